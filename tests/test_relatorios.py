# -*- coding: utf-8 -*-
from datetime import date

from escola_web import relatorios
from escola_web.relatorios import GeradorPDF

HOJE = date(2025, 3, 10)


def test_nome_arquivo():
    assert relatorios.nome_arquivo("presencas", HOJE) == "presencas_2025-03-10.pdf"
    assert relatorios.nome_arquivo("boletim", HOJE, "5º Ano A") == "boletim_5º_Ano_A_2025-03-10.pdf"


def test_boletim_gera_pdf():
    notas = [{
        "student": {"id": 1, "name": "Ana"},
        "diary": {"subject": {"name": "Matemática"}},
        "value": "8.5",
        "gradeType": "Prova",
    }]
    conteudo = relatorios.pdf_boletim({"name": "1º Bimestre"}, notas, {"name": "5º Ano A"}, "ESCOLA TESTE", HOJE)
    assert conteudo.startswith(b"%PDF")


def test_frequencia_quebra_pagina_com_muitos_alunos():
    alunos = [
        {"name": f"Aluno {i}", "totalClasses": 10, "present": i % 10, "absent": 10 - i % 10,
         "late": 0, "percentage": (i % 10) * 10}
        for i in range(60)
    ]
    gerador = GeradorPDF("ESCOLA TESTE", HOJE).frequencia(
        {"start": date(2025, 3, 1), "end": date(2025, 3, 31)}, alunos)
    assert gerador.paginas > 1
    assert gerador.gerar().startswith(b"%PDF")


def test_frequencia_sem_alunos():
    conteudo = relatorios.pdf_frequencia({"start": "2025-03-01", "end": "2025-03-31"}, [], None, hoje=HOJE)
    assert conteudo.startswith(b"%PDF")


def test_resumo_mensal_com_zero_aulas():
    resumo = {"totalStudents": 0, "totalClasses": 0, "averageAttendance": 0, "totalGrades": 0}
    gerador = GeradorPDF("ESCOLA TESTE", HOJE).resumo_mensal(
        "RESUMO MENSAL - 03/2025", {"start": date(2025, 3, 1), "end": date(2025, 3, 31)}, resumo)
    assert gerador.paginas == 1
    assert gerador.gerar().startswith(b"%PDF")
