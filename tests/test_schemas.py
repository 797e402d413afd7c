# -*- coding: utf-8 -*-
from datetime import date

import pytest
from pydantic import ValidationError

from escola_web.schemas import EtapaForm, NotaForm, TransacaoForm, PagamentoForm, payload, erros_validacao


def test_etapa_com_fim_antes_do_inicio():
    with pytest.raises(ValidationError) as exc:
        EtapaForm(name="1º Bimestre", term_type="bimester", year=2025,
                  start_date="2025-04-30", end_date="2025-02-01")
    assert "posterior" in erros_validacao(exc.value)


def test_payload_da_nota_usa_data_iso_e_omite_vazios():
    nota = NotaForm(student_id="4", value="8,5", grade_type="Prova", date="2025-03-10", observation="")
    assert payload(nota) == {"student_id": 4, "value": 8.5, "grade_type": "Prova", "date": "2025-03-10"}


def test_transacao_valida():
    transacao = TransacaoForm(transaction_type="expense", amount="1.250,00", due_date="2025-03-15",
                              description="Conta de luz", discount="", late_fee="")
    assert transacao.amount == 1250.0
    assert transacao.due_date == date(2025, 3, 15)
    assert transacao.discount == 0


@pytest.mark.parametrize("dados", [
    {"transaction_type": "gift", "amount": "10", "due_date": "2025-03-15", "description": "x"},
    {"transaction_type": "income", "amount": "0", "due_date": "2025-03-15", "description": "x"},
    {"transaction_type": "income", "amount": "10", "due_date": "2025-03-15", "description": ""},
])
def test_transacao_invalida(dados):
    with pytest.raises(ValidationError):
        TransacaoForm(**dados)


def test_pagamento_parcial_no_payload():
    pagamento = PagamentoForm(payment_method="pix", paid_date="2025-03-20", discount="5")
    assert payload(pagamento, include={"payment_method", "paid_date"}) == {
        "payment_method": "pix", "paid_date": "2025-03-20"}
