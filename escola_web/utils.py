# -*- coding: utf-8 -*-
"""
Funções auxiliares: requisições à API REST da escola, extração de mensagens
de erro e filtros de formatação usados nos templates.
"""

from datetime import datetime, date

import requests
from flask import session, current_app


class ErroAPI(Exception):
    """Falha de rede ou resposta não-2xx da API."""

    def __init__(self, mensagem, status_code=None, corpo=None):
        super().__init__(mensagem)
        self.mensagem = mensagem
        self.status_code = status_code
        self.corpo = corpo

    @property
    def nao_encontrado(self):
        return self.status_code == 404


def mensagem_erro(corpo, padrao="Erro ao comunicar com o servidor."):
    """
    Extrai uma mensagem legível do corpo de erro da API.

    A API responde com ``message``, ``error``, ``errors`` ou ``detail``
    dependendo do endpoint; erros de validação podem vir como lista.
    """
    if not isinstance(corpo, dict):
        return padrao

    for chave in ("message", "error", "detail"):
        valor = corpo.get(chave)
        if isinstance(valor, list):
            itens = [v.get("msg", str(v)) if isinstance(v, dict) else str(v) for v in valor]
            if itens:
                return ", ".join(itens)
        elif valor:
            return str(valor)

    erros = corpo.get("errors")
    if isinstance(erros, list) and erros:
        return ", ".join(str(e) for e in erros)
    if isinstance(erros, dict) and erros:
        return ", ".join(f"{campo} {', '.join(map(str, msgs)) if isinstance(msgs, list) else msgs}"
                         for campo, msgs in erros.items())
    return padrao


def api_request(endpoint, method='GET', json=None, params=None, headers=None):
    """
    Função auxiliar para fazer requisições à API, incluindo o token de autenticação.

    Retorna o JSON decodificado (ou None para respostas sem corpo).
    Levanta ErroAPI em falha de rede ou status diferente de 2xx.
    """
    api_base_url = current_app.config.get('API_BASE_URL')
    timeout = current_app.config.get('API_TIMEOUT', 10)
    url = f"{api_base_url}{endpoint}"

    request_headers = dict(headers) if headers is not None else {}
    if 'access_token' in session and 'Authorization' not in request_headers:
        request_headers['Authorization'] = f"Bearer {session['access_token']}"

    if params:
        params = {k: v for k, v in params.items() if v not in (None, '')}

    try:
        if method == 'GET':
            response = requests.get(url, timeout=timeout, params=params, headers=request_headers)
        elif method == 'POST':
            response = requests.post(url, json=json, timeout=timeout, params=params, headers=request_headers)
        elif method == 'PUT':
            response = requests.put(url, json=json, timeout=timeout, params=params, headers=request_headers)
        elif method == 'PATCH':
            response = requests.patch(url, json=json, timeout=timeout, params=params, headers=request_headers)
        elif method == 'DELETE':
            response = requests.delete(url, timeout=timeout, params=params, headers=request_headers)
        else:
            raise ValueError(f"Método HTTP não suportado: {method}")
    except requests.exceptions.RequestException as e:
        current_app.logger.error(f"Erro na requisição {method} {url}: {e}")
        raise ErroAPI("Não foi possível conectar ao servidor.") from e

    current_app.logger.info(f"API Request: {method} {url} - Status: {response.status_code}")

    # Token expirado ou inválido: força novo login
    if response.status_code == 401:
        session.clear()

    corpo = None
    nao_json = False
    if response.content:
        try:
            corpo = response.json()
        except ValueError:
            corpo = response.text
            nao_json = True

    if not 200 <= response.status_code < 300:
        raise ErroAPI(mensagem_erro(corpo), status_code=response.status_code, corpo=corpo)
    if nao_json:
        # HTML de proxy ou página de erro no lugar do JSON
        current_app.logger.error(f"Resposta não-JSON de {method} {url}: {corpo[:200]}")
        raise ErroAPI("Resposta inválida do servidor.", status_code=response.status_code, corpo=corpo)
    return corpo


def campo(obj, *chaves, padrao=None):
    """Lê o primeiro campo presente entre variantes camelCase/snake_case."""
    if not isinstance(obj, dict):
        return padrao
    for chave in chaves:
        valor = obj.get(chave)
        if valor is not None:
            return valor
    return padrao


def para_data(valor):
    """Converte 'AAAA-MM-DD' (ou ISO com hora) em date; None se inválido."""
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    if not valor:
        return None
    try:
        return datetime.fromisoformat(str(valor).replace('Z', '+00:00')).date()
    except ValueError:
        return None


def format_datetime(s):
    if not s:
        return ""
    try:
        dt_obj = datetime.fromisoformat(str(s).replace('Z', '+00:00'))
        return dt_obj.strftime('%d/%m/%Y %H:%M')
    except (ValueError, TypeError):
        return s


def format_date_br(value):
    if not value:
        return ""
    dt_obj = para_data(value)
    return dt_obj.strftime('%d/%m/%Y') if dt_obj else value


def format_moeda(value):
    try:
        numero = float(value or 0)
    except (TypeError, ValueError):
        return value
    texto = f"{numero:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"R$ {texto}"
