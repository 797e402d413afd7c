# -*- coding: utf-8 -*-
"""
Busca em paralelo dos dados que alimentam a consolidação.

A API não tem endpoint agregado de notas por turma, então as notas e as
ocorrências são buscadas aluno a aluno. As chamadas rodam num pool de threads
com limite de workers (FANOUT_MAX_WORKERS); cada tarefa recebe uma cópia do
contexto da requisição para ter acesso à sessão (token) e à configuração.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta

from flask import current_app, copy_current_request_context

from escola_web import api, agregacao
from escola_web.utils import ErroAPI, campo

logger = logging.getLogger(__name__)


def em_paralelo(tarefas, max_workers=None):
    """
    Executa as funções sem argumentos de ``tarefas`` em paralelo e devolve os
    resultados na mesma ordem. A primeira exceção é repropagada.
    """
    tarefas = list(tarefas)
    if not tarefas:
        return []
    limite = max_workers or current_app.config.get("FANOUT_MAX_WORKERS", 8)
    with ThreadPoolExecutor(max_workers=min(limite, len(tarefas))) as executor:
        futuros = [executor.submit(copy_current_request_context(t)) for t in tarefas]
        return [f.result() for f in futuros]


def ou_vazio(funcao, padrao):
    """Envolve a busca de um bloco opcional: se a API falhar devolve ``padrao``."""
    def executar():
        try:
            return funcao()
        except ErroAPI as e:
            logger.warning(f"Bloco opcional indisponível: {e.mensagem}")
            return padrao
    return executar


def _lista(corpo, chave=None):
    return api.Pagina.de_resposta(corpo, chave).itens


def notas_do_aluno(aluno_id, **filtros):
    return _lista(api.notas.listar({"student_id": aluno_id, **filtros}), "grades")


def ocorrencias_do_aluno(aluno_id, **filtros):
    return _lista(api.ocorrencias.listar({"student_id": aluno_id, **filtros}), "occurrences")


def presencas_do_aluno(aluno_id, **filtros):
    return _lista(api.presencas.listar({"student_id": aluno_id, **filtros}), "attendances")


def _por_aluno(alunos, busca):
    resultados = em_paralelo([(lambda a=a: busca(a["id"])) for a in alunos])
    return {a["id"]: r for a, r in zip(alunos, resultados)}


def carregar_notas_diario(diario_id):
    """
    Diário + roster em paralelo; depois as notas de cada aluno em um segundo
    lote. Retorna (diario, notas_alunos, resumo).
    """
    diario, alunos = em_paralelo([
        lambda: api.diarios.obter(diario_id),
        lambda: api.diarios.alunos(diario_id),
    ])
    notas_alunos = agregacao.notas_por_aluno(alunos, _por_aluno(alunos, notas_do_aluno))
    return diario, notas_alunos, agregacao.resumo_notas_diario(notas_alunos)


def carregar_ocorrencias_diario(diario_id):
    diario, alunos = em_paralelo([
        lambda: api.diarios.obter(diario_id),
        lambda: api.diarios.alunos(diario_id),
    ])
    ocorrencias_alunos = agregacao.ocorrencias_por_aluno(alunos, _por_aluno(alunos, ocorrencias_do_aluno))
    return diario, ocorrencias_alunos, agregacao.resumo_ocorrencias_diario(ocorrencias_alunos)


def frequencia_turma(turma_id, inicio=None, fim=None):
    """Linhas do relatório de presenças da turma no período."""
    alunos = api.turmas.alunos(turma_id)
    filtros = {"start_date": inicio, "end_date": fim}
    presencas_de = _por_aluno(alunos, lambda aluno_id: presencas_do_aluno(aluno_id, **filtros))
    return alunos, agregacao.relatorio_frequencia(alunos, presencas_de)


def resumo_filho(aluno, hoje=None):
    """
    Números do card de um filho no painel do responsável. Se alguma chamada
    falhar, o card mostra zeros em vez de derrubar a página.
    """
    hoje = hoje or date.today()
    turma = campo(aluno, "schoolClass", "school_class", padrao={}) or {}
    base = {
        "id": aluno.get("id"),
        "name": aluno.get("name"),
        "class": turma.get("name") or aluno.get("class") or "Sem turma",
        "averageGrade": 0,
        "attendancePercentage": 0,
        "recentOccurrences": 0,
    }
    try:
        notas = notas_do_aluno(aluno["id"])
        presencas = presencas_do_aluno(aluno["id"])
        inicio = (hoje - timedelta(days=30)).isoformat()
        ocorrencias = ocorrencias_do_aluno(aluno["id"], start_date=inicio)
    except ErroAPI as e:
        logger.warning(f"Erro ao carregar dados do aluno {aluno.get('id')}: {e.mensagem}")
        return base

    base.update({
        "averageGrade": round(agregacao.media_notas(notas), 1),
        "attendancePercentage": round(agregacao.percentual_frequencia(presencas)),
        "recentOccurrences": len(ocorrencias),
    })
    return base


def resumo_filhos(responsavel_id, hoje=None):
    alunos = api.responsaveis.alunos(responsavel_id)
    return em_paralelo([(lambda a=a: resumo_filho(a, hoje)) for a in alunos])


def estatisticas_gerais_filhos(filhos):
    if not filhos:
        return {"averageGrade": 0, "averageAttendance": 0, "totalOccurrences": 0}
    return {
        "averageGrade": round(agregacao.media(f["averageGrade"] for f in filhos), 1),
        "averageAttendance": round(agregacao.media(f["attendancePercentage"] for f in filhos)),
        "totalOccurrences": sum(f["recentOccurrences"] for f in filhos),
    }
