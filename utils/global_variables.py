# utils/global_variables.py

SCROLL_FLAG = "_scroll_to_top"

FORMS_DIR = "forms"

TIME_FORMAT = "%H:%M"

DATE_FORMAT = "%d/%m/%Y"

# seconds; the collector never answers with a readable body
TRANSPORT_TIMEOUT = 30

REDIRECT_URL = "https://www.lifenergy.com.br/"

SUCCESS_MESSAGE = "Formulário enviado com sucesso!"

FAILURE_MESSAGE = "Erro ao enviar os dados."

SUBMIT_SPINNER_TEXT = "Enviando respostas..."

FOOTER_LINES = (
    "Instituto Wedja de Socionomia SS Ltda - CNPJ: 07.922.254/0001-06",
    "Rua Joao Carvalho Nº800 - sala 503 - Aldeota - Fortaleza - Ceará - CEP 60.140-140",
    "WhatsApp (85)99782.0069 / (85)3224-1587",
)

SIGNATURES = (
    ("Wedja Josefa Granja Costa", "CRP11/0002"),
    ("Carlos Irineu Granja Costa", "CRP11/4334"),
)
