# -*- coding: utf-8 -*-
import json as jsonlib
import threading
import time

import pytest
import requests

from escola_web import create_app
from escola_web.config import TestingConfig

API = TestingConfig.API_BASE_URL


class RespostaFalsa:
    def __init__(self, status_code=200, corpo=None, texto=None):
        self.status_code = status_code
        if texto is not None:
            self.content = texto.encode("utf-8")
        else:
            self.content = b"" if corpo is None else jsonlib.dumps(corpo).encode("utf-8")
        self.text = self.content.decode("utf-8")

    def json(self):
        return jsonlib.loads(self.content)


class ApiFalsa:
    """
    Substitui requests.get/post/put/patch/delete. As rotas são registradas por
    (método, caminho sem a URL base); rotas desconhecidas respondem 404.
    """

    def __init__(self):
        self.rotas = {}
        self.chamadas = []
        self.atraso = 0
        self.em_andamento = 0
        self.pico = 0
        self._lock = threading.Lock()

    def responder(self, metodo, caminho, corpo=None, status=200):
        self.rotas[(metodo, caminho)] = RespostaFalsa(status, corpo)
        return self

    def responder_texto(self, metodo, caminho, texto, status=200):
        self.rotas[(metodo, caminho)] = RespostaFalsa(status, texto=texto)
        return self

    def falhar_conexao(self, metodo, caminho):
        self.rotas[(metodo, caminho)] = requests.exceptions.ConnectionError("recusada")
        return self

    def chamadas_de(self, metodo, caminho=None):
        return [c for c in self.chamadas if c["method"] == metodo and (caminho is None or c["path"] == caminho)]

    def _tratar(self, metodo, url, json=None, params=None, headers=None, timeout=None):
        caminho = url[len(API):] if url.startswith(API) else url
        with self._lock:
            self.chamadas.append({"method": metodo, "path": caminho, "json": json,
                                  "params": params, "headers": headers or {}})
            self.em_andamento += 1
            self.pico = max(self.pico, self.em_andamento)
        try:
            if self.atraso:
                time.sleep(self.atraso)
            resposta = self.rotas.get((metodo, caminho))
            if isinstance(resposta, Exception):
                raise resposta
            if resposta is None:
                return RespostaFalsa(404, {"error": f"{caminho} não encontrado"})
            return resposta
        finally:
            with self._lock:
                self.em_andamento -= 1

    def instalar(self, monkeypatch):
        for metodo in ("get", "post", "put", "patch", "delete"):
            def fake(url, _metodo=metodo.upper(), **kwargs):
                return self._tratar(_metodo, url, **kwargs)
            monkeypatch.setattr(requests, metodo, fake)


@pytest.fixture
def app():
    return create_app(TestingConfig)


@pytest.fixture
def api_falsa(monkeypatch):
    falsa = ApiFalsa()
    falsa.instalar(monkeypatch)
    return falsa


def logar(client, role="admin", **extras):
    with client.session_transaction() as sess:
        sess["access_token"] = "token-teste"
        sess["user_info"] = {"id": 1, "name": "Usuário Teste", "role": role, **extras}


def mensagens_flash(client):
    with client.session_transaction() as sess:
        return [mensagem for _, mensagem in sess.get("_flashes", [])]


@pytest.fixture
def client(app, api_falsa):
    client = app.test_client()
    logar(client, "admin")
    return client
