# Flake8: noqa
from .v8_api_client import V8ApiClient
from .pessoas_api_client import PessoasApiClient
