# -*- coding: utf-8 -*-
"""
Exportação de listagens para planilha (CSV de alunos, XLSX de mensalidades).
"""

import io
from datetime import date

import pandas as pd

from escola_web.schemas import valor_final_mensalidade
from escola_web.utils import campo, format_date_br

STATUS_ALUNO_PT = {'active': 'Ativo', 'inactive': 'Inativo', 'transferred': 'Transferido'}
STATUS_COBRANCA_PT = {'pending': 'Pendente', 'paid': 'Pago', 'overdue': 'Atrasado', 'cancelled': 'Cancelado'}


def nome_arquivo_alunos(hoje=None):
    return f"alunos_{(hoje or date.today()).isoformat()}.csv"


def nome_arquivo_mensalidades(hoje=None, status=None):
    filename = f"mensalidades_{(hoje or date.today()).isoformat()}"
    if status:
        filename += f"_{status}"
    return filename + ".xlsx"


def linhas_alunos(alunos):
    export_data = []
    for a in alunos or []:
        turma = campo(a, 'schoolClass', 'school_class', padrao={}) or {}
        responsaveis = a.get('guardians') or []
        export_data.append({
            "Matrícula": campo(a, 'registrationNumber', 'registration_number', padrao=''),
            "Nome": a.get('name', ''),
            "Nascimento": format_date_br(campo(a, 'birthDate', 'birth_date')),
            "Turma": turma.get('name', '') if isinstance(turma, dict) else turma,
            "Status": STATUS_ALUNO_PT.get(a.get('status'), a.get('status') or ''),
            "Responsáveis": ", ".join(r.get('name', '') for r in responsaveis if isinstance(r, dict)),
        })
    return export_data


def csv_alunos(alunos) -> bytes:
    """CSV (UTF-8 com BOM, para abrir direto no Excel) com as colunas da listagem."""
    df = pd.DataFrame(linhas_alunos(alunos),
                      columns=["Matrícula", "Nome", "Nascimento", "Turma", "Status", "Responsáveis"])
    return df.to_csv(index=False).encode('utf-8-sig')


def linhas_mensalidades(mensalidades):
    export_data = []
    for m in mensalidades or []:
        aluno = m.get('student') or {}
        export_data.append({
            "Aluno": aluno.get('name', 'N/A') if aluno else 'N/A',
            "Vencimento": format_date_br(campo(m, 'dueDate', 'due_date')),
            "Valor (R$)": m.get('amount'),
            "Desconto (R$)": m.get('discount') or 0,
            "Multa (R$)": campo(m, 'lateFee', 'late_fee', padrao=0),
            "Valor Final (R$)": campo(m, 'finalAmount', 'final_amount') or valor_final_mensalidade(
                m.get('amount'), m.get('discount'), campo(m, 'lateFee', 'late_fee', padrao=0)),
            "Status": STATUS_COBRANCA_PT.get(m.get('status'), m.get('status') or ''),
            "Data Pagamento": format_date_br(campo(m, 'paidDate', 'paid_date')),
        })
    return export_data


def xlsx_mensalidades(mensalidades) -> io.BytesIO:
    df = pd.DataFrame(linhas_mensalidades(mensalidades))
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        df.to_excel(writer, index=False, sheet_name='Mensalidades')
    output.seek(0)
    return output
