# -*- coding: utf-8 -*-
"""
Configuração da aplicação web, lida de variáveis de ambiente (.env).
"""

import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    API_BASE_URL = os.environ.get('API_BASE_URL', 'http://localhost:3001/api/v1')
    API_TIMEOUT = float(os.environ.get('API_TIMEOUT', 10))

    # Limite de requisições simultâneas por página (busca por aluno)
    FANOUT_MAX_WORKERS = int(os.environ.get('FANOUT_MAX_WORKERS', 8))

    ITENS_POR_PAGINA = int(os.environ.get('ITENS_POR_PAGINA', 20))
    NOME_ESCOLA = os.environ.get('NOME_ESCOLA', 'ESCOLA INFANTIL')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')  # None = console


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing'
    API_BASE_URL = 'http://api.teste/api/v1'
    FANOUT_MAX_WORKERS = 4
