# -*- coding: utf-8 -*-
"""
Financeiro: painel, mensalidades (filtros, estatísticas, pagamento, geração
em lote, PIX e exportação XLSX), salários dos professores, transações
financeiras e fluxo de caixa.
"""

from datetime import date

from dateutil.relativedelta import relativedelta
from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app, Response
from pydantic import ValidationError

from escola_web import api, agregacao, coleta, exportacao
from escola_web.api import Pagina
from escola_web.schemas import (MensalidadeForm, SalarioForm, PagamentoForm, GeracaoLoteForm, TransacaoForm,
                                payload, erros_validacao, FORMAS_PAGAMENTO, TIPOS_TRANSACAO)
from escola_web.utils import ErroAPI, campo, para_data
from escola_web.views.crud import opcoes_de
from escola_web.views.escola import somente_equipe

bp = Blueprint('financeiro', __name__, url_prefix='/dashboard/financeiro')
bp.before_request(somente_equipe)

NOMES_STATUS = {'pending': 'Pendente', 'paid': 'Pago', 'overdue': 'Atrasado', 'cancelled': 'Cancelado'}
NOMES_FORMA = {'cash': 'Dinheiro', 'card': 'Cartão', 'transfer': 'Transferência', 'pix': 'PIX', 'boleto': 'Boleto'}
NOMES_TIPO_TRANSACAO = {'tuition': 'Mensalidade', 'salary': 'Salário', 'expense': 'Despesa', 'income': 'Receita'}


def _sem_falha(funcao, padrao):
    try:
        return funcao()
    except ErroAPI as e:
        current_app.logger.warning(f"Dados financeiros indisponíveis: {e.mensagem}")
        return padrao


@bp.route('/')
def painel():
    mes = request.args.get('mes', date.today().strftime('%Y-%m'))
    dados = _sem_falha(lambda: api.financas.painel(mes), None)
    if dados is None:
        flash("Não foi possível carregar o painel financeiro.", "warning")
        dados = {}
    return render_template('financeiro/painel.html', dados=dados, mes=mes)


# --- Mensalidades ---

def _filtros_mensalidades():
    return {
        'status': request.args.get('status', ''),
        'search': request.args.get('search', ''),
        'month': request.args.get('month', ''),
        'year': request.args.get('year', ''),
    }


@bp.route('/mensalidades')
def mensalidades():
    filtros = _filtros_mensalidades()
    page = request.args.get('page', 1, type=int)
    params = {**filtros, 'page': page, 'per_page': current_app.config.get('ITENS_POR_PAGINA', 20)}
    try:
        pagina, alunos = coleta.em_paralelo([
            lambda: api.mensalidades.paginar(params),
            opcoes_de(api.alunos),
        ])
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao listar mensalidades: {e.mensagem}")
        flash(f"Erro ao listar mensalidades: {e.mensagem}", "error")
        pagina, alunos = Pagina([], {}), []

    estatisticas = _sem_falha(lambda: api.mensalidades.estatisticas(filtros), {}) or {}
    return render_template('financeiro/mensalidades.html', pagina=pagina, page=page, filtros=filtros,
                           alunos=alunos, estatisticas=campo(estatisticas, 'statistics', padrao=estatisticas),
                           nomes_status=NOMES_STATUS, formas=[(f, NOMES_FORMA[f]) for f in FORMAS_PAGAMENTO],
                           hoje=date.today().isoformat(), proximo_mes=date.today() + relativedelta(months=1))


@bp.route('/mensalidades/nova', methods=['POST'])
def mensalidades_criar():
    try:
        mensalidade = MensalidadeForm(**request.form.to_dict())
    except ValidationError as e:
        flash(f"Mensalidade inválida: {erros_validacao(e)}", "error")
        return redirect(url_for('financeiro.mensalidades'))

    dados = payload(mensalidade)
    dados['final_amount'] = mensalidade.valor_final
    try:
        api.mensalidades.criar(dados)
        flash("Mensalidade criada com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao criar mensalidade: {e.mensagem}")
        flash(f"Erro ao criar mensalidade: {e.mensagem}", "error")
    return redirect(url_for('financeiro.mensalidades'))


@bp.route('/mensalidades/<int:id>/pagar', methods=['POST'])
def mensalidades_pagar(id):
    try:
        pagamento = PagamentoForm(**request.form.to_dict())
    except ValidationError as e:
        flash(f"Pagamento inválido: {erros_validacao(e)}", "error")
        return redirect(url_for('financeiro.mensalidades'))

    try:
        api.mensalidades.pagar(id, payload(pagamento))
        flash("Pagamento registrado com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao registrar pagamento da mensalidade {id}: {e.mensagem}")
        flash(f"Erro ao registrar pagamento: {e.mensagem}", "error")
    return redirect(url_for('financeiro.mensalidades'))


@bp.route('/mensalidades/<int:id>/excluir', methods=['POST'])
def mensalidades_excluir(id):
    try:
        api.mensalidades.excluir(id)
        flash("Mensalidade excluída com sucesso!", "success")
    except ErroAPI as e:
        flash(f"Erro ao excluir mensalidade: {e.mensagem}", "error")
    return redirect(url_for('financeiro.mensalidades'))


@bp.route('/mensalidades/gerar', methods=['POST'])
def mensalidades_gerar():
    try:
        lote = GeracaoLoteForm(**request.form.to_dict())
    except ValidationError as e:
        flash(f"Dados inválidos: {erros_validacao(e)}", "error")
        return redirect(url_for('financeiro.mensalidades'))

    try:
        resultado = api.mensalidades.gerar_em_lote(lote.month, lote.year, lote.amount) or {}
        quantidade = campo(resultado, 'created', 'count', padrao=None)
        msg = f"{quantidade} mensalidades geradas." if quantidade is not None else "Mensalidades geradas."
        flash(msg, "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao gerar mensalidades {lote.month}/{lote.year}: {e.mensagem}")
        flash(f"Erro ao gerar mensalidades: {e.mensagem}", "error")
    return redirect(url_for('financeiro.mensalidades', month=lote.month, year=lote.year))


@bp.route('/mensalidades/<int:id>/pix', methods=['POST'])
def mensalidades_pix(id):
    """Gera o voucher PIX da fatura Cora vinculada à mensalidade."""
    try:
        mensalidade = api.mensalidades.obter(id)
        fatura = campo(mensalidade, 'coraInvoice', 'cora_invoice', padrao={}) or {}
        if not fatura.get('id'):
            flash("Esta mensalidade não possui fatura Cora.", "warning")
            return redirect(url_for('financeiro.mensalidades'))
        voucher = api.boletos_cora.gerar_pix(fatura['id']) or {}
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao gerar PIX da mensalidade {id}: {e.mensagem}")
        flash(f"Erro ao gerar PIX: {e.mensagem}", "error")
        return redirect(url_for('financeiro.mensalidades'))

    return render_template('financeiro/pix.html', mensalidade=mensalidade,
                           voucher=campo(voucher, 'voucher', 'pix', padrao=voucher))


@bp.route('/mensalidades/exportar')
def mensalidades_exportar():
    filtros = _filtros_mensalidades()
    try:
        lista = api.mensalidades.paginar({**filtros, 'per_page': 10000}).itens
    except ErroAPI as e:
        flash(f"Erro ao buscar dados para exportação: {e.mensagem}", "error")
        return redirect(url_for('financeiro.mensalidades', **filtros))

    if not lista:
        flash("Nenhuma mensalidade encontrada para exportar com os filtros atuais.", "info")
        return redirect(url_for('financeiro.mensalidades', **filtros))

    try:
        output = exportacao.xlsx_mensalidades(lista)
    except Exception as e:
        current_app.logger.error(f"Erro ao gerar XLSX: {e}", exc_info=True)
        flash(f"Erro ao gerar arquivo Excel: {e}", "error")
        return redirect(url_for('financeiro.mensalidades', **filtros))

    filename = exportacao.nome_arquivo_mensalidades(status=filtros['status'])
    return Response(
        output,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        headers={"Content-Disposition": f"attachment;filename={filename}"}
    )


# --- Salários ---

@bp.route('/salarios')
def salarios():
    filtros = {
        'status': request.args.get('status', ''),
        'month': request.args.get('month', ''),
        'year': request.args.get('year', ''),
    }
    try:
        pagina, professores = coleta.em_paralelo([
            lambda: api.salarios.paginar(filtros),
            opcoes_de(api.professores),
        ])
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao listar salários: {e.mensagem}")
        flash(f"Erro ao listar salários: {e.mensagem}", "error")
        pagina, professores = Pagina([], {}), []

    estatisticas = _sem_falha(lambda: api.salarios.estatisticas(filtros), {}) or {}
    return render_template('financeiro/salarios.html', pagina=pagina, filtros=filtros, professores=professores,
                           estatisticas=campo(estatisticas, 'statistics', padrao=estatisticas),
                           nomes_status=NOMES_STATUS, hoje=date.today())


@bp.route('/salarios/novo', methods=['POST'])
def salarios_criar():
    try:
        salario = SalarioForm(**request.form.to_dict())
    except ValidationError as e:
        flash(f"Salário inválido: {erros_validacao(e)}", "error")
        return redirect(url_for('financeiro.salarios'))

    dados = payload(salario)
    dados['final_amount'] = salario.valor_final
    try:
        api.salarios.criar(dados)
        flash("Salário cadastrado com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao cadastrar salário: {e.mensagem}")
        flash(f"Erro ao cadastrar salário: {e.mensagem}", "error")
    return redirect(url_for('financeiro.salarios'))


@bp.route('/salarios/<int:id>/pagar', methods=['POST'])
def salarios_pagar(id):
    try:
        api.salarios.pagar(id)
        flash("Salário marcado como pago!", "success")
    except ErroAPI as e:
        flash(f"Erro ao pagar salário: {e.mensagem}", "error")
    return redirect(url_for('financeiro.salarios'))


@bp.route('/salarios/gerar', methods=['POST'])
def salarios_gerar():
    try:
        lote = GeracaoLoteForm(**request.form.to_dict())
    except ValidationError as e:
        flash(f"Dados inválidos: {erros_validacao(e)}", "error")
        return redirect(url_for('financeiro.salarios'))

    try:
        api.salarios.gerar_em_lote(lote.month, lote.year)
        flash("Salários gerados com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao gerar salários {lote.month}/{lote.year}: {e.mensagem}")
        flash(f"Erro ao gerar salários: {e.mensagem}", "error")
    return redirect(url_for('financeiro.salarios', month=lote.month, year=lote.year))


# --- Transações financeiras ---

def _filtros_transacoes():
    return {
        'type': request.args.get('type', ''),
        'status': request.args.get('status', ''),
        'search': request.args.get('search', ''),
        'start_date': request.args.get('start_date', ''),
        'end_date': request.args.get('end_date', ''),
    }


@bp.route('/transacoes')
def transacoes():
    filtros = _filtros_transacoes()
    page = request.args.get('page', 1, type=int)
    params = {**filtros, 'page': page, 'per_page': current_app.config.get('ITENS_POR_PAGINA', 20)}
    corpo = {}
    try:
        corpo = api.transacoes.listar(params) or {}
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao listar transações: {e.mensagem}")
        flash(f"Erro ao listar transações: {e.mensagem}", "error")

    pagina = Pagina.de_resposta(corpo, 'transactions')
    resumo = agregacao.resumo_transacoes(pagina.itens, campo(corpo, 'summary'))
    return render_template('financeiro/transacoes.html', pagina=pagina, page=page, filtros=filtros,
                           resumo=resumo, nomes_status=NOMES_STATUS, nomes_tipo=NOMES_TIPO_TRANSACAO,
                           tipos=TIPOS_TRANSACAO, formas=[(f, NOMES_FORMA[f]) for f in FORMAS_PAGAMENTO],
                           hoje=date.today().isoformat())


@bp.route('/transacoes/nova', methods=['POST'])
def transacoes_criar():
    try:
        transacao = TransacaoForm(**request.form.to_dict())
    except ValidationError as e:
        flash(f"Transação inválida: {erros_validacao(e)}", "error")
        return redirect(url_for('financeiro.transacoes'))

    dados = payload(transacao)
    dados['final_amount'] = round(transacao.amount - transacao.discount + transacao.late_fee, 2)
    try:
        api.transacoes.criar(dados)
        flash("Transação criada com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao criar transação: {e.mensagem}")
        flash(f"Erro ao criar transação: {e.mensagem}", "error")
    return redirect(url_for('financeiro.transacoes'))


@bp.route('/transacoes/<int:id>/pagar', methods=['POST'])
def transacoes_pagar(id):
    try:
        pagamento = PagamentoForm(**request.form.to_dict())
    except ValidationError as e:
        flash(f"Pagamento inválido: {erros_validacao(e)}", "error")
        return redirect(url_for('financeiro.transacoes'))

    try:
        api.transacoes.pagar(id, payload(pagamento, include={'payment_method', 'paid_date'}))
        flash("Pagamento registrado com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao registrar pagamento da transação {id}: {e.mensagem}")
        flash(f"Erro ao registrar pagamento: {e.mensagem}", "error")
    return redirect(url_for('financeiro.transacoes'))


@bp.route('/transacoes/<int:id>/excluir', methods=['POST'])
def transacoes_excluir(id):
    try:
        api.transacoes.excluir(id)
        flash("Transação excluída com sucesso!", "success")
    except ErroAPI as e:
        flash(f"Erro ao excluir transação: {e.mensagem}", "error")
    return redirect(url_for('financeiro.transacoes'))


@bp.route('/transacoes/<int:id>/fatura-cora', methods=['POST'])
def transacoes_fatura_cora(id):
    try:
        api.transacoes.gerar_fatura_cora(id)
        flash("Fatura Cora gerada com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao gerar fatura Cora da transação {id}: {e.mensagem}")
        flash(f"Erro ao gerar fatura: {e.mensagem}", "error")
    return redirect(url_for('financeiro.transacoes'))


@bp.route('/transacoes/<int:id>/boleto', methods=['POST'])
def transacoes_boleto(id):
    """Gera o boleto da fatura Cora já vinculada à transação."""
    try:
        transacao = api.transacoes.obter(id)
        fatura = campo(transacao, 'coraInvoice', 'cora_invoice', padrao={}) or {}
        fatura_id = campo(fatura, 'id', 'invoiceId', 'invoice_id')
        if not fatura_id:
            flash("Gere a fatura Cora antes do boleto.", "warning")
            return redirect(url_for('financeiro.transacoes'))
        api.boletos_cora.gerar_boleto(fatura_id)
        flash("Boleto gerado com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao gerar boleto da transação {id}: {e.mensagem}")
        flash(f"Erro ao gerar boleto: {e.mensagem}", "error")
    return redirect(url_for('financeiro.transacoes'))


# --- Fluxo de caixa ---

def periodo_do_mes(hoje=None):
    inicio = (hoje or date.today()).replace(day=1)
    return inicio, inicio + relativedelta(months=1, days=-1)


@bp.route('/fluxo-caixa')
def fluxo_caixa():
    padrao_inicio, padrao_fim = periodo_do_mes()
    inicio = para_data(request.args.get('start_date')) or padrao_inicio
    fim = para_data(request.args.get('end_date')) or padrao_fim
    if fim < inicio:
        flash("A data final deve ser posterior à data inicial.", "error")
        inicio, fim = padrao_inicio, padrao_fim

    dados = _sem_falha(lambda: api.transacoes.fluxo_caixa(inicio.isoformat(), fim.isoformat()), None)
    if dados is None:
        flash("Não foi possível carregar o fluxo de caixa.", "warning")
        dados = {}
    return render_template(
        'financeiro/fluxo_caixa.html', inicio=inicio, fim=fim,
        resumo=agregacao.resumo_fluxo_caixa(dados),
        diario=agregacao.fluxo_diario(dados),
        mensal=agregacao.fluxo_mensal(dados),
        recentes=campo(dados, 'recentTransactions', 'recent_transactions', padrao=[]),
        atrasadas=campo(dados, 'overdueTransactions', 'overdue_transactions', padrao=[]),
        nomes_status=NOMES_STATUS, nomes_tipo=NOMES_TIPO_TRANSACAO,
    )
