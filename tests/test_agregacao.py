# -*- coding: utf-8 -*-
from datetime import date

import pytest

from escola_web import agregacao
from escola_web.schemas import valor_final_mensalidade, valor_final_salario


def nota(aluno_id, disciplina, valor, nome=None):
    return {
        "student": {"id": aluno_id, "name": nome or f"Aluno {aluno_id}"},
        "diary": {"subject": {"name": disciplina}},
        "value": valor,
        "gradeType": "Prova",
    }


@pytest.mark.parametrize("valor,esperado", [
    ("7.5", 7.5), (8, 8.0), (None, 0.0), ("abc", 0.0), (float("nan"), 0.0), (True, 0.0),
])
def test_converter_nota(valor, esperado):
    assert agregacao.converter_nota(valor) == esperado


def test_media_de_lista_vazia_e_zero():
    assert agregacao.media([]) == 0.0
    assert agregacao.media_notas(None) == 0.0
    assert agregacao.percentual(3, 0) == 0.0


def test_resumo_frequencia_conta_so_present():
    presencas = [{"status": "present"}, {"status": "present"}, {"status": "late"}, {"status": "absent"}]
    resumo = agregacao.resumo_frequencia(presencas)
    assert resumo["total"] == 4
    assert resumo["present"] == 2
    assert resumo["late"] == 1
    assert resumo["percentage"] == 50.0


def test_boletim_aluno_agrupa_por_disciplina():
    notas = [nota(1, "Matemática", 8), nota(1, "Matemática", 6), nota(1, "Português", 4)]
    boletim = agregacao.boletim_aluno(notas)
    assert [d["subject"] for d in boletim["subjects"]] == ["Matemática", "Português"]
    assert boletim["subjects"][0]["average"] == 7.0
    assert boletim["general_average"] == 5.5
    assert boletim["status"] == "recovery"


def test_boletim_aluno_sem_disciplina():
    boletim = agregacao.boletim_aluno([{"value": 9}])
    assert boletim["subjects"][0]["subject"] == agregacao.SEM_DISCIPLINA


def test_boletim_turma_preserva_ordem_dos_alunos():
    notas = [nota(2, "Artes", 10, "Bia"), nota(1, "Artes", 3, "Ana"), nota(2, "Artes", 8, "Bia")]
    boletins = agregacao.boletim_turma(notas)
    assert [b["name"] for b in boletins] == ["Bia", "Ana"]
    assert boletins[0]["general_average"] == 9.0
    assert boletins[0]["status"] == "approved"
    assert boletins[1]["status"] == "failed"


def test_media_da_turma_e_media_das_medias():
    notas_de = {1: [{"value": 10}, {"value": 10}, {"value": 10}], 2: [{"value": 4}]}
    alunos = [{"id": 1}, {"id": 2}, {"id": 3}]
    linhas = agregacao.notas_por_aluno(alunos, notas_de)
    resumo = agregacao.resumo_notas_diario(linhas)
    assert resumo["class_average"] == pytest.approx(14 / 3)
    assert resumo["total_grades"] == 4
    assert resumo["students"] == 3


def test_agrupar_por_aluno_aceita_variantes():
    registros = [{"studentId": 1}, {"student_id": 1}, {"student": {"id": 2}}]
    grupos = agregacao.agrupar_por_aluno(registros)
    assert len(grupos[1]) == 2
    assert len(grupos[2]) == 1


def test_relatorio_frequencia_arredonda_percentual():
    alunos = [{"id": 1, "name": "Ana"}, {"id": 2, "name": "Bia"}]
    presencas_de = {1: [{"status": "present"}, {"status": "present"}, {"status": "absent"}]}
    linhas = agregacao.relatorio_frequencia(alunos, presencas_de)
    assert linhas[0]["percentage"] == 67
    assert linhas[1]["totalClasses"] == 0
    assert linhas[1]["percentage"] == 0
    resumo = agregacao.resumo_relatorio_frequencia(linhas)
    assert resumo == {"total_students": 2, "total_present": 2, "total_absent": 1, "average_attendance": 34}


def test_estatisticas_aulas_considera_so_concluidas():
    aulas = [
        {"status": "completed", "attendanceSummary": {"present": 8}},
        {"status": "completed", "students_present": 6},
        {"status": "planned", "attendanceSummary": {"present": 10}},
    ]
    estat = agregacao.estatisticas_aulas(aulas, 10)
    assert estat["total_lessons"] == 2
    assert estat["total_presences"] == 14
    assert estat["average_attendance"] == 70.0


def test_estatisticas_aulas_sem_alunos():
    assert agregacao.estatisticas_aulas([{"status": "completed"}], 0)["average_attendance"] == 0.0


def test_distribuicao_notas_faixas():
    notas = [{"value": v} for v in (10, 9, 8.9, 7, 6.9, 5, 4.9, 0)]
    contagem = {f["range"]: f["count"] for f in agregacao.distribuicao_notas(notas)}
    assert contagem == {"9.0 - 10.0": 2, "7.0 - 8.9": 2, "5.0 - 6.9": 2, "0.0 - 4.9": 2}
    assert agregacao.estatisticas_notas(notas)["above7"] == 4


def test_estatisticas_ocorrencias():
    hoje = date(2025, 3, 15)
    ocorrencias = [
        {"date": "2025-03-02", "occurrenceType": "positive", "severity": "low", "notifiedGuardians": True},
        {"date": "2025-02-20", "occurrence_type": "disciplinary", "severity": "high"},
    ]
    estat = agregacao.estatisticas_ocorrencias(ocorrencias, hoje)
    assert estat["total"] == 2
    assert estat["this_month"] == 1
    assert estat["positive"] == 1
    assert estat["pending"] == 1
    assert estat["by_severity"] == {"low": 1, "high": 1}


def test_resumo_mensal_sem_dados_resulta_em_zeros():
    assert agregacao.resumo_mensal([], [], [], 0) == {
        "totalStudents": 0, "totalClasses": 0, "averageAttendance": 0, "totalGrades": 0,
    }


@pytest.mark.parametrize("pct,cor", [(75, "green"), (74.9, "orange"), (60, "orange"), (59.9, "red"), (59, "red")])
def test_cor_frequencia(pct, cor):
    assert agregacao.cor_frequencia(pct) == cor


def test_cores_de_nota_e_media():
    assert agregacao.cor_media(7) == "green"
    assert agregacao.cor_media(5) == "yellow"
    assert agregacao.cor_nota(6) == "blue"
    assert agregacao.cor_nota(3.9) == "red"
    assert agregacao.cor_frequencia_responsavel(85) == "yellow"


def test_valores_finais():
    assert valor_final_mensalidade(500, 50, 10) == 460.0
    assert valor_final_salario(3000, 200, 150) == 3050.0


def test_resumo_transacoes_calculado_da_pagina():
    transacoes = [
        {"transactionType": "tuition", "amount": 500, "finalAmount": 460, "status": "paid"},
        {"transactionType": "income", "amount": 100, "status": "overdue"},
        {"transactionType": "salary", "amount": 3000, "status": "pending"},
        {"transaction_type": "expense", "amount": 200, "status": "cancelled"},
    ]
    resumo = agregacao.resumo_transacoes(transacoes)
    assert resumo["total_count"] == 4
    assert resumo["receivables"] == {"count": 2, "amount": 560.0, "paid": 460.0, "pending": 100.0}
    assert resumo["payables"] == {"count": 2, "amount": 3200.0, "paid": 0.0, "pending": 3000.0}
    assert resumo["net_flow"] == -2640.0


def test_resumo_transacoes_prefere_summary_da_api():
    resumo_api = {
        "totalCount": 30,
        "receivables": {"count": 20, "amount": 10000, "paid": 8000, "pending": 2000},
        "payables": {"count": 10, "amount": 6000, "paid": 6000, "pending": 0},
    }
    resumo = agregacao.resumo_transacoes([], resumo_api)
    assert resumo["total_count"] == 30
    assert resumo["receivables"]["paid"] == 8000
    assert resumo["net_flow"] == 4000


def test_resumo_fluxo_caixa_vazio_da_zeros():
    resumo = agregacao.resumo_fluxo_caixa({})
    assert resumo["receivables"] == {"total": 0.0, "paid": 0.0, "pending": 0.0}
    assert resumo["net_flow"] == 0
    assert resumo["transactions_count"] == 0
    assert agregacao.fluxo_diario(None) == []


def test_fluxo_caixa_normaliza_chaves():
    dados = {
        "summary": {"receivables": {"total": "1500.50", "paid": 1000}, "payables": {"total": 700},
                    "transactionsCount": 9},
        "dailyBreakdown": [{"date": "2025-03-05", "receivablesDue": 500, "payablesPaid": 200, "netFlow": 300}],
    }
    resumo = agregacao.resumo_fluxo_caixa(dados)
    assert resumo["net_flow"] == 800.5
    assert resumo["transactions_count"] == 9
    dia = agregacao.fluxo_diario(dados)[0]
    assert dia["receivables_due"] == 500
    assert dia["payables_due"] == 0
    assert dia["net_flow"] == 300
