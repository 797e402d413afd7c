# -*- coding: utf-8 -*-
from datetime import date

import pandas as pd

from escola_web import exportacao


def test_nomes_de_arquivo():
    hoje = date(2025, 3, 10)
    assert exportacao.nome_arquivo_alunos(hoje) == "alunos_2025-03-10.csv"
    assert exportacao.nome_arquivo_mensalidades(hoje) == "mensalidades_2025-03-10.xlsx"
    assert exportacao.nome_arquivo_mensalidades(hoje, "paid") == "mensalidades_2025-03-10_paid.xlsx"


def test_csv_alunos():
    alunos = [{
        "registration_number": "2025001",
        "name": "Ana Souza",
        "birth_date": "2015-06-01",
        "school_class": {"name": "5º Ano A"},
        "status": "active",
        "guardians": [{"name": "Maria"}, {"name": "João"}],
    }]
    conteudo = exportacao.csv_alunos(alunos)
    assert conteudo.startswith(b"\xef\xbb\xbf")
    linhas = conteudo.decode("utf-8-sig").splitlines()
    assert linhas[0] == "Matrícula,Nome,Nascimento,Turma,Status,Responsáveis"
    assert linhas[1] == '2025001,Ana Souza,01/06/2015,5º Ano A,Ativo,"Maria, João"'


def test_csv_alunos_vazio_tem_cabecalho():
    linhas = exportacao.csv_alunos([]).decode("utf-8-sig").splitlines()
    assert linhas == ["Matrícula,Nome,Nascimento,Turma,Status,Responsáveis"]


def test_xlsx_mensalidades():
    mensalidades = [
        {"student": {"name": "Ana"}, "due_date": "2025-03-10", "amount": 500, "discount": 50,
         "late_fee": 0, "status": "paid", "paid_date": "2025-03-09"},
        {"student": None, "dueDate": "2025-04-10", "amount": 500, "finalAmount": 480, "status": "pending"},
    ]
    df = pd.read_excel(exportacao.xlsx_mensalidades(mensalidades), engine="openpyxl")
    assert list(df["Aluno"]) == ["Ana", "N/A"]
    assert list(df["Valor Final (R$)"]) == [450, 480]
    assert list(df["Status"]) == ["Pago", "Pendente"]
