# -*- coding: utf-8 -*-
"""
Consolidação de notas, frequência e ocorrências por aluno e por turma.

Todas as funções são puras: recebem as coleções já buscadas na API (listas de
dicts) e devolvem os números prontos para a tela ou para o PDF. Nenhuma
divisão é feita sem checar o denominador; o resultado de um conjunto vazio é 0.
"""

import math
from collections import Counter, OrderedDict
from datetime import date

from escola_web.utils import campo, para_data

# Limiares de cor usados nas telas e nos relatórios
FREQUENCIA_VERDE = 75
FREQUENCIA_LARANJA = 60
MEDIA_APROVADO = 7
MEDIA_RECUPERACAO = 5

FAIXAS_NOTAS = (
    ("9.0 - 10.0", 9, None),
    ("7.0 - 8.9", 7, 9),
    ("5.0 - 6.9", 5, 7),
    ("0.0 - 4.9", None, 5),
)

SEM_DISCIPLINA = "Matéria não identificada"


def converter_nota(valor) -> float:
    """Converte o valor da nota para float; valores não numéricos viram 0."""
    if isinstance(valor, bool):
        return 0.0
    try:
        numero = float(valor)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(numero) or math.isinf(numero):
        return 0.0
    return numero


def media(valores) -> float:
    valores = [converter_nota(v) for v in valores]
    return sum(valores) / len(valores) if len(valores) > 0 else 0.0


def media_notas(notas) -> float:
    """Média aritmética dos valores das notas (0 se não houver notas)."""
    return media(n.get("value") for n in notas or [])


def media_turma(medias_alunos) -> float:
    """Média da turma = média das médias individuais."""
    return media(medias_alunos)


def resumo_frequencia(presencas) -> dict:
    """
    Conta presenças por status e calcula o percentual de frequência.

    Só ``present`` conta como presença; o total é o número de registros
    (uma aula = um registro por aluno).
    """
    contagem = Counter(p.get("status") for p in presencas or [])
    total = sum(contagem.values())
    return {
        "total": total,
        "present": contagem.get("present", 0),
        "absent": contagem.get("absent", 0),
        "late": contagem.get("late", 0),
        "justified": contagem.get("justified", 0),
        "percentage": percentual(contagem.get("present", 0), total),
    }


def percentual(parte, total) -> float:
    return (parte / total) * 100 if total > 0 else 0.0


def percentual_frequencia(presencas) -> float:
    return resumo_frequencia(presencas)["percentage"]


def contar_ocorrencias(ocorrencias, chave="occurrenceType") -> dict:
    """Conta ocorrências agrupadas por tipo (padrão) ou por gravidade."""
    variantes = {
        "occurrenceType": ("occurrenceType", "occurrence_type", "type"),
        "severity": ("severity",),
    }.get(chave, (chave,))
    return dict(Counter(campo(o, *variantes) for o in ocorrencias or []))


def estatisticas_ocorrencias(ocorrencias, hoje=None) -> dict:
    """Totais da tela de ocorrências: total, no mês, positivas e pendentes de aviso."""
    hoje = hoje or date.today()
    ocorrencias = ocorrencias or []

    def no_mes(o):
        d = para_data(o.get("date"))
        return d is not None and d.month == hoje.month and d.year == hoje.year

    return {
        "total": len(ocorrencias),
        "this_month": sum(1 for o in ocorrencias if no_mes(o)),
        "positive": contar_ocorrencias(ocorrencias).get("positive", 0),
        "pending": sum(1 for o in ocorrencias
                       if not campo(o, "notifiedGuardians", "notified_guardians", padrao=False)),
        "by_type": contar_ocorrencias(ocorrencias),
        "by_severity": contar_ocorrencias(ocorrencias, "severity"),
    }


def situacao(media_geral) -> str:
    if media_geral >= MEDIA_APROVADO:
        return "approved"
    if media_geral >= MEDIA_RECUPERACAO:
        return "recovery"
    return "failed"


def _nome_disciplina(nota):
    diario = nota.get("diary") or {}
    disciplina = diario.get("subject") or nota.get("subject") or {}
    if isinstance(disciplina, dict):
        return disciplina.get("name") or SEM_DISCIPLINA
    return disciplina or SEM_DISCIPLINA


def _disciplinas(notas):
    """Agrupa notas por disciplina, com a média de cada uma."""
    por_disciplina = OrderedDict()
    for nota in notas:
        nome = _nome_disciplina(nota)
        por_disciplina.setdefault(nome, []).append({
            "type": campo(nota, "gradeType", "grade_type", padrao="Avaliação"),
            "value": converter_nota(nota.get("value")),
            "date": nota.get("date"),
        })
    return [
        {"subject": nome, "grades": lista, "average": media(g["value"] for g in lista)}
        for nome, lista in por_disciplina.items()
    ]


def boletim_aluno(notas) -> dict:
    """Boletim de um aluno: médias por disciplina, média geral e situação."""
    disciplinas = _disciplinas(notas or [])
    media_geral = media(d["average"] for d in disciplinas)
    return {
        "subjects": disciplinas,
        "general_average": round(media_geral, 2),
        "status": situacao(media_geral),
    }


def boletim_turma(notas) -> list:
    """
    Boletim da turma a partir da lista de notas do relatório.

    Agrupa por aluno e, dentro de cada aluno, por disciplina. A ordem dos
    alunos segue a primeira aparição na lista.
    """
    por_aluno = OrderedDict()
    for nota in notas or []:
        aluno = nota.get("student") or {}
        registro = por_aluno.setdefault(aluno.get("id"), {"student": aluno, "grades": []})
        registro["grades"].append(nota)

    resultado = []
    for aluno_id, registro in por_aluno.items():
        aluno = registro["student"]
        boletim = boletim_aluno(registro["grades"])
        boletim.update({
            "id": aluno_id,
            "name": aluno.get("name", ""),
            "registration_number": campo(aluno, "registrationNumber", "registration_number", padrao=""),
        })
        resultado.append(boletim)
    return resultado


def notas_por_aluno(alunos, notas_de) -> list:
    """
    Junta o roster com as notas de cada aluno.

    ``notas_de`` é um dict {aluno_id: [notas]} já buscado na API.
    """
    resultado = []
    for aluno in alunos or []:
        notas = notas_de.get(aluno.get("id")) or []
        resultado.append({"student": aluno, "grades": notas, "average": media_notas(notas)})
    return resultado


def resumo_notas_diario(notas_alunos) -> dict:
    """Totais do cabeçalho da tela de notas do diário."""
    return {
        "class_average": media_turma(a["average"] for a in notas_alunos),
        "total_grades": sum(len(a["grades"]) for a in notas_alunos),
        "students": len(notas_alunos),
    }


def ocorrencias_por_aluno(alunos, ocorrencias_de) -> list:
    resultado = []
    for aluno in alunos or []:
        lista = ocorrencias_de.get(aluno.get("id")) or []
        resultado.append({"student": aluno, "occurrences": lista, "counts": contar_ocorrencias(lista)})
    return resultado


def resumo_ocorrencias_diario(ocorrencias_alunos) -> dict:
    todas = [o for a in ocorrencias_alunos for o in a["occurrences"]]
    por_tipo = contar_ocorrencias(todas)
    return {
        "total": len(todas),
        "disciplinary": por_tipo.get("disciplinary", 0),
        "positive": por_tipo.get("positive", 0),
        "by_severity": contar_ocorrencias(todas, "severity"),
    }


def agrupar_por_aluno(registros) -> dict:
    """Agrupa presenças/notas soltas em {aluno_id: [registros]}."""
    grupos = {}
    for r in registros or []:
        aluno_id = campo(r, "studentId", "student_id")
        if aluno_id is None:
            aluno_id = (r.get("student") or {}).get("id")
        grupos.setdefault(aluno_id, []).append(r)
    return grupos


def relatorio_frequencia(alunos, presencas_de) -> list:
    """Linhas do relatório de presenças: uma por aluno, percentual arredondado."""
    linhas = []
    for aluno in alunos or []:
        resumo = resumo_frequencia(presencas_de.get(aluno.get("id")) or [])
        linhas.append({
            "id": aluno.get("id"),
            "name": aluno.get("name", ""),
            "totalClasses": resumo["total"],
            "present": resumo["present"],
            "absent": resumo["absent"],
            "late": resumo["late"],
            "justified": resumo["justified"],
            "percentage": round(resumo["percentage"]),
        })
    return linhas


def resumo_relatorio_frequencia(linhas) -> dict:
    total = len(linhas)
    return {
        "total_students": total,
        "total_present": sum(l["present"] for l in linhas),
        "total_absent": sum(l["absent"] for l in linhas),
        "average_attendance": round(sum(l["percentage"] for l in linhas) / total) if total > 0 else 0,
    }


def estatisticas_aulas(aulas, total_alunos) -> dict:
    """
    Frequência média do diário considerando só aulas concluídas:
    presenças / (aulas concluídas x alunos).
    """
    concluidas = [a for a in aulas or [] if a.get("status") == "completed"]
    presencas = 0
    for aula in concluidas:
        resumo = campo(aula, "attendanceSummary", "attendance_summary", padrao={})
        presencas += campo(aula, "studentsPresent", "students_present", padrao=None) or resumo.get("present", 0) or 0
    possivel = len(concluidas) * (total_alunos or 0)
    return {
        "total_lessons": len(concluidas),
        "total_presences": presencas,
        "average_attendance": percentual(presencas, possivel),
    }


def estatisticas_notas(notas) -> dict:
    valores = [converter_nota(n.get("value")) for n in notas or []]
    return {
        "average": media(valores),
        "above7": sum(1 for v in valores if v >= MEDIA_APROVADO),
        "total_grades": len(valores),
    }


def distribuicao_notas(notas) -> list:
    valores = [converter_nota(n.get("value")) for n in notas or []]
    faixas = []
    for rotulo, minimo, maximo in FAIXAS_NOTAS:
        quantidade = sum(1 for v in valores
                         if (minimo is None or v >= minimo) and (maximo is None or v < maximo))
        faixas.append({"range": rotulo, "count": quantidade})
    return faixas


def resumo_mensal(alunos, turmas, linhas_frequencia, total_notas) -> dict:
    """Números do resumo mensal; listas vazias resultam em zeros."""
    return {
        "totalStudents": len(alunos or []),
        "totalClasses": len(turmas or []),
        "averageAttendance": resumo_relatorio_frequencia(linhas_frequencia or [])["average_attendance"],
        "totalGrades": total_notas or 0,
    }


# --- Finanças ---

TIPOS_RECEBER = ("tuition", "income")
STATUS_EM_ABERTO = ("pending", "overdue")


def valor_final(registro) -> float:
    """finalAmount quando a API envia; senão o valor base."""
    valor = campo(registro, "finalAmount", "final_amount")
    return converter_nota(registro.get("amount") if valor is None else valor)


def totais_por_status(registros) -> dict:
    """Quantidade, valor total, valor pago e valor em aberto (pendente ou atrasado)."""
    pares = [(valor_final(r), r.get("status")) for r in registros or []]
    return {
        "count": len(pares),
        "amount": round(sum(v for v, _ in pares), 2),
        "paid": round(sum(v for v, s in pares if s == "paid"), 2),
        "pending": round(sum(v for v, s in pares if s in STATUS_EM_ABERTO), 2),
    }


def tipo_transacao(transacao):
    return campo(transacao, "transactionType", "transaction_type", "type")


def resumo_transacoes(transacoes, resumo_api=None) -> dict:
    """
    Totais da tela de transações. Usa o ``summary`` da API quando ele vem
    preenchido; caso contrário soma a página: mensalidades e receitas a
    receber, salários e despesas a pagar.
    """
    if isinstance(resumo_api, dict) and (resumo_api.get("receivables") or resumo_api.get("payables")):
        receber = {k: converter_nota((resumo_api.get("receivables") or {}).get(k))
                   for k in ("count", "amount", "paid", "pending")}
        pagar = {k: converter_nota((resumo_api.get("payables") or {}).get(k))
                 for k in ("count", "amount", "paid", "pending")}
        total = campo(resumo_api, "totalCount", "total_count", padrao=0)
    else:
        transacoes = transacoes or []
        receber = totais_por_status([t for t in transacoes if tipo_transacao(t) in TIPOS_RECEBER])
        pagar = totais_por_status([t for t in transacoes if tipo_transacao(t) not in TIPOS_RECEBER])
        total = len(transacoes)
    return {
        "total_count": total,
        "receivables": receber,
        "payables": pagar,
        "net_flow": round(receber["amount"] - pagar["amount"], 2),
    }


def _bloco_fluxo(bloco) -> dict:
    bloco = bloco or {}
    return {k: converter_nota(bloco.get(k)) for k in ("total", "paid", "pending")}


def resumo_fluxo_caixa(dados) -> dict:
    """Cabeçalho do fluxo de caixa; chaves ausentes viram zero."""
    resumo = campo(dados or {}, "summary", padrao=None) or {}
    receber = _bloco_fluxo(resumo.get("receivables"))
    pagar = _bloco_fluxo(resumo.get("payables"))
    saldo = campo(resumo, "netFlow", "net_flow")
    return {
        "period": resumo.get("period") or "",
        "receivables": receber,
        "payables": pagar,
        "net_flow": round(receber["total"] - pagar["total"], 2) if saldo is None else converter_nota(saldo),
        "transactions_count": campo(resumo, "transactionsCount", "transactions_count", padrao=0),
    }


COLUNAS_FLUXO_DIARIO = (
    ("receivablesDue", "receivables_due"),
    ("payablesDue", "payables_due"),
    ("receivablesPaid", "receivables_paid"),
    ("payablesPaid", "payables_paid"),
    ("netFlow", "net_flow"),
)


def fluxo_diario(dados) -> list:
    linhas = []
    for dia in campo(dados or {}, "dailyBreakdown", "daily_breakdown", padrao=None) or []:
        linha = {"date": dia.get("date")}
        for camel, snake in COLUNAS_FLUXO_DIARIO:
            linha[snake] = converter_nota(campo(dia, camel, snake))
        linhas.append(linha)
    return linhas


def fluxo_mensal(dados) -> list:
    linhas = []
    for mes in campo(dados or {}, "monthlyBreakdown", "monthly_breakdown", padrao=None) or []:
        receber = _bloco_fluxo(mes.get("receivables"))
        pagar = _bloco_fluxo(mes.get("payables"))
        saldo = campo(mes, "netFlow", "net_flow")
        linhas.append({
            "month": mes.get("month") or "",
            "receivables": receber,
            "payables": pagar,
            "net_flow": round(receber["total"] - pagar["total"], 2) if saldo is None else converter_nota(saldo),
        })
    return linhas


# --- Cores (classes CSS nas telas, RGB no PDF) ---

def cor_frequencia(percentual_valor) -> str:
    if percentual_valor >= FREQUENCIA_VERDE:
        return "green"
    if percentual_valor >= FREQUENCIA_LARANJA:
        return "orange"
    return "red"


def cor_media(valor) -> str:
    if valor >= MEDIA_APROVADO:
        return "green"
    if valor >= MEDIA_RECUPERACAO:
        return "yellow"
    return "red"


def cor_nota(valor) -> str:
    if valor >= 8:
        return "green"
    if valor >= 6:
        return "blue"
    if valor >= 4:
        return "yellow"
    return "red"


def cor_frequencia_responsavel(percentual_valor) -> str:
    if percentual_valor >= 90:
        return "green"
    if percentual_valor >= 80:
        return "yellow"
    return "red"
