# -*- coding: utf-8 -*-
import pytest
from flask import session

from escola_web import api
from escola_web.api import Pagina, desembrulhar
from escola_web.utils import ErroAPI, api_request, mensagem_erro


def test_pagina_lista_pura():
    pagina = Pagina.de_resposta([{"id": 1}])
    assert pagina.itens == [{"id": 1}]
    assert not pagina.tem_proxima


def test_pagina_data_meta():
    pagina = Pagina.de_resposta({"data": [{"id": 1}], "meta": {"next_page": 2, "prev_page": None}})
    assert len(pagina) == 1
    assert pagina.tem_proxima
    assert not pagina.tem_anterior


def test_pagina_chave_do_recurso():
    corpo = {"students": [{"id": 1}, {"id": 2}], "meta": {"next_page": None, "total_count": 2}}
    pagina = Pagina.de_resposta(corpo, "students")
    assert [a["id"] for a in pagina] == [1, 2]
    assert not pagina.tem_proxima


def test_pagina_vazia():
    assert Pagina.de_resposta(None).itens == []
    assert Pagina.de_resposta("<html>erro</html>").itens == []


def test_pagina_com_pagination_em_camel_case():
    corpo = {"transactions": [{"id": 1}], "pagination": {"currentPage": 2, "totalPages": 3, "totalCount": 41}}
    pagina = Pagina.de_resposta(corpo, "transactions")
    assert pagina.pagina_atual == 2
    assert pagina.proxima == 3
    assert pagina.anterior == 1

    ultima = Pagina.de_resposta({"transactions": [], "pagination": {"currentPage": 3, "totalPages": 3}})
    assert not ultima.tem_proxima
    assert ultima.tem_anterior


def test_desembrulhar():
    assert desembrulhar({"student": {"id": 1}}, "student") == {"id": 1}
    assert desembrulhar({"lesson": {"id": 2}}) == {"id": 2}
    assert desembrulhar({"id": 3, "name": "x"}, "student") == {"id": 3, "name": "x"}


def test_mensagem_erro_variantes():
    assert mensagem_erro({"message": "Falhou"}) == "Falhou"
    assert mensagem_erro({"errors": ["a", "b"]}) == "a, b"
    assert mensagem_erro({"detail": [{"msg": "campo obrigatório"}]}) == "campo obrigatório"
    assert mensagem_erro("texto") == "Erro ao comunicar com o servidor."


def test_api_request_envia_token_e_limpa_params(app, api_falsa):
    api_falsa.responder("GET", "/students", {"students": []})
    with app.test_request_context():
        session["access_token"] = "abc"
        api_request("/students", params={"search": "", "status": "active", "page": None})
    chamada = api_falsa.chamadas[0]
    assert chamada["headers"]["Authorization"] == "Bearer abc"
    assert chamada["params"] == {"status": "active"}


def test_api_request_erro_http(app, api_falsa):
    api_falsa.responder("GET", "/classes/9", {"error": "Turma não encontrada"}, status=404)
    with app.test_request_context():
        with pytest.raises(ErroAPI) as exc:
            api.turmas.obter(9)
    assert exc.value.nao_encontrado
    assert exc.value.mensagem == "Turma não encontrada"


def test_api_request_401_limpa_sessao(app, api_falsa):
    api_falsa.responder("GET", "/dashboard", {"error": "Token expirado"}, status=401)
    with app.test_request_context():
        session["access_token"] = "velho"
        with pytest.raises(ErroAPI):
            api.painel.visao_geral()
        assert "access_token" not in session


def test_api_request_falha_de_rede(app, api_falsa):
    api_falsa.falhar_conexao("GET", "/subjects")
    with app.test_request_context():
        with pytest.raises(ErroAPI) as exc:
            api.disciplinas.listar()
    assert exc.value.status_code is None



def test_api_request_resposta_nao_json(app, api_falsa):
    api_falsa.responder_texto("GET", "/classes", "<html><body>502 Bad Gateway</body></html>")
    with app.test_request_context():
        with pytest.raises(ErroAPI) as exc:
            api.turmas.paginar()
    assert exc.value.mensagem == "Resposta inválida do servidor."
    assert exc.value.status_code == 200

def test_recurso_envelope_no_payload(app, api_falsa):
    api_falsa.responder("POST", "/grades", {"grade": {"id": 1}}, status=201)
    api_falsa.responder("POST", "/diaries/3/lessons", {"id": 5}, status=201)
    with app.test_request_context():
        api.notas.criar({"value": 8})
        api.diarios.criar_aula(3, {"topic": "Frações"})
    assert api_falsa.chamadas_de("POST", "/grades")[0]["json"] == {"grade": {"value": 8}}
    assert api_falsa.chamadas_de("POST", "/diaries/3/lessons")[0]["json"] == {"topic": "Frações"}


def test_resposta_sem_corpo(app, api_falsa):
    api_falsa.responder("DELETE", "/students/1", None, status=204)
    with app.test_request_context():
        assert api.alunos.excluir(1) is None


@pytest.mark.parametrize("chamar,metodo,caminho", [
    (lambda: api.etapas.ativar(2), "PUT", "/academic_terms/2/set_active"),
    (lambda: api.mensalidades.relatorio_atrasos(), "GET", "/tuitions/overdue_report"),
    (lambda: api.boletos_cora.gerar_boleto(4), "POST", "/cora_invoices/4/generate_boleto"),
    (lambda: api.boletos_cora.cancelar(4), "PATCH", "/cora_invoices/4/cancel"),
    (lambda: api.presencas.atualizar_em_lote([{"id": 1, "status": "late"}]), "PUT", "/attendances/bulk_update"),
    (lambda: api.diarios.ocorrencias(3, "2025-03-10"), "GET", "/diaries/3/occurrences"),
    (lambda: api.autenticacao.validar(), "GET", "/auth/validate"),
    (lambda: api.salarios.pagar(8), "PUT", "/salaries/8/pay"),
    (lambda: api.transacoes.pagar(2, {"payment_method": "pix"}), "PUT", "/financial_transactions/2/pay"),
    (lambda: api.transacoes.gerar_fatura_cora(2), "POST", "/financial_transactions/2/generate_cora_invoice"),
    (lambda: api.transacoes.fluxo_caixa("2025-03-01", "2025-03-31"), "GET", "/financial_transactions/cash_flow"),
])
def test_acoes_especificas_dos_recursos(app, api_falsa, chamar, metodo, caminho):
    api_falsa.responder(metodo, caminho, {"message": "ok"})
    with app.test_request_context():
        chamar()
    assert len(api_falsa.chamadas_de(metodo, caminho)) == 1


def test_transacao_obter_tira_envelope(app, api_falsa):
    api_falsa.responder("GET", "/financial_transactions/2", {"transaction": {"id": 2, "amount": 100}})
    api_falsa.responder("POST", "/financial_transactions", {"id": 3}, status=201)
    with app.test_request_context():
        assert api.transacoes.obter(2) == {"id": 2, "amount": 100}
        api.transacoes.criar({"amount": 50})
    assert api_falsa.chamadas_de("POST", "/financial_transactions")[0]["json"] == {
        "financial_transaction": {"amount": 50}}


def test_fluxo_caixa_envia_periodo(app, api_falsa):
    api_falsa.responder("GET", "/financial_transactions/cash_flow", {"summary": {}})
    with app.test_request_context():
        api.transacoes.fluxo_caixa("2025-03-01", "2025-03-31")
    assert api_falsa.chamadas[0]["params"] == {"start_date": "2025-03-01", "end_date": "2025-03-31"}
