# -*- coding: utf-8 -*-
"""
Relatórios: boletim (turma ou aluno), frequência da turma e resumo mensal,
exibidos em tela ou baixados em PDF (``?formato=pdf``; ``&abrir=1`` abre
no navegador em vez de baixar).
"""

from datetime import date

from dateutil.relativedelta import relativedelta
from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app, Response

from escola_web import api, agregacao, coleta, relatorios as pdf
from escola_web.api import Pagina
from escola_web.utils import ErroAPI, para_data
from escola_web.views.crud import opcoes_de
from escola_web.views.escola import somente_equipe

bp = Blueprint('relatorios', __name__, url_prefix='/dashboard/relatorios')
bp.before_request(somente_equipe)


def _resposta_pdf(conteudo, filename):
    disposicao = 'inline' if request.args.get('abrir') else 'attachment'
    return Response(
        conteudo,
        mimetype='application/pdf',
        headers={"Content-Disposition": f"{disposicao};filename={filename}"}
    )


def _opcoes():
    """Turmas e etapas para os filtros."""
    try:
        turmas, etapas = coleta.em_paralelo([opcoes_de(api.turmas), opcoes_de(api.etapas)])
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao carregar filtros dos relatórios: {e.mensagem}")
        flash("Não foi possível carregar turmas e etapas.", "warning")
        turmas, etapas = [], []
    return turmas, etapas


def _gerar_pdf(gerar, filename, voltar):
    try:
        conteudo = gerar()
    except Exception as e:
        current_app.logger.error(f"Erro ao gerar PDF {filename}: {e}", exc_info=True)
        flash(f"Erro ao gerar PDF: {e}", "error")
        return redirect(voltar)
    return _resposta_pdf(conteudo, filename)


@bp.route('/')
def index():
    return render_template('relatorios/index.html')


@bp.route('/notas')
def notas():
    turma_id = request.args.get('turma_id', '')
    etapa_id = request.args.get('etapa_id', '')
    aluno_id = request.args.get('aluno_id', '')
    turmas, etapas = _opcoes()

    boletins, boletim, notas_brutas, turma, etapa = [], None, [], None, None
    if etapa_id and (turma_id or aluno_id):
        try:
            etapa = api.etapas.obter(etapa_id)
            if aluno_id:
                corpo = api.relatorios.aluno(aluno_id, etapa_id) or {}
                notas_brutas = Pagina.de_resposta(corpo, 'grades').itens
                boletim = agregacao.boletim_aluno(notas_brutas)
                boletim['student'] = corpo.get('student') if isinstance(corpo, dict) else None
            else:
                turma = api.turmas.obter(turma_id)
                notas_brutas = Pagina.de_resposta(api.relatorios.notas(turma_id, etapa_id), 'grades').itens
                boletins = agregacao.boletim_turma(notas_brutas)
        except ErroAPI as e:
            current_app.logger.error(f"Erro ao gerar boletim: {e.mensagem}")
            flash(f"Erro ao gerar boletim: {e.mensagem}", "error")
            return redirect(url_for('relatorios.notas'))

        if request.args.get('formato') == 'pdf':
            hoje = date.today()
            return _gerar_pdf(
                lambda: pdf.pdf_boletim(etapa, notas_brutas, turma,
                                        current_app.config['NOME_ESCOLA'], hoje),
                pdf.nome_arquivo('boletim', hoje, (turma or {}).get('name')),
                url_for('relatorios.notas', turma_id=turma_id, etapa_id=etapa_id, aluno_id=aluno_id),
            )

    return render_template('relatorios/notas.html', turmas=turmas, etapas=etapas, turma_id=turma_id,
                           etapa_id=etapa_id, aluno_id=aluno_id, boletins=boletins, boletim=boletim,
                           turma=turma, etapa=etapa)


def _periodo_padrao():
    hoje = date.today()
    return hoje.replace(day=1), hoje


@bp.route('/frequencia')
def frequencia():
    turma_id = request.args.get('turma_id', '')
    padrao_inicio, padrao_fim = _periodo_padrao()
    inicio = para_data(request.args.get('inicio')) or padrao_inicio
    fim = para_data(request.args.get('fim')) or padrao_fim
    turmas, _ = _opcoes()

    linhas, resumo, turma = [], None, None
    if turma_id:
        try:
            turma = api.turmas.obter(turma_id)
            _, linhas = coleta.frequencia_turma(turma_id, inicio.isoformat(), fim.isoformat())
        except ErroAPI as e:
            current_app.logger.error(f"Erro ao gerar relatório de frequência: {e.mensagem}")
            flash(f"Erro ao gerar relatório de frequência: {e.mensagem}", "error")
            return redirect(url_for('relatorios.frequencia'))
        resumo = agregacao.resumo_relatorio_frequencia(linhas)

        if request.args.get('formato') == 'pdf':
            hoje = date.today()
            periodo = {'start': inicio, 'end': fim}
            return _gerar_pdf(
                lambda: pdf.pdf_frequencia(periodo, linhas, turma, current_app.config['NOME_ESCOLA'], hoje),
                pdf.nome_arquivo('presencas', hoje),
                url_for('relatorios.frequencia', turma_id=turma_id, inicio=inicio, fim=fim),
            )

    return render_template('relatorios/frequencia.html', turmas=turmas, turma_id=turma_id, turma=turma,
                           inicio=inicio, fim=fim, linhas=linhas, resumo=resumo)


def periodo_do_mes(referencia):
    """'AAAA-MM' (ou None = mês atual) -> (primeiro dia, último dia)."""
    try:
        inicio = date.fromisoformat(f"{referencia}-01") if referencia else date.today().replace(day=1)
    except ValueError:
        inicio = date.today().replace(day=1)
    return inicio, inicio + relativedelta(months=1) - relativedelta(days=1)


@bp.route('/resumo-mensal')
def resumo_mensal():
    inicio, fim = periodo_do_mes(request.args.get('mes'))
    filtros = {'start_date': inicio.isoformat(), 'end_date': fim.isoformat(), 'per_page': 10000}
    try:
        alunos, turmas, presencas, notas = coleta.em_paralelo([
            lambda: api.alunos.paginar({'status': 'active', 'per_page': 10000}).itens,
            lambda: api.turmas.paginar({'per_page': 10000}).itens,
            lambda: api.presencas.paginar(filtros).itens,
            lambda: api.notas.paginar(filtros),
        ])
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao montar resumo mensal: {e.mensagem}")
        flash(f"Erro ao montar resumo mensal: {e.mensagem}", "error")
        return redirect(url_for('relatorios.index'))

    linhas = agregacao.relatorio_frequencia(alunos, agregacao.agrupar_por_aluno(presencas))
    total_notas = notas.meta.get('total_count') or len(notas)
    resumo = agregacao.resumo_mensal(alunos, turmas, linhas, total_notas)
    titulo = f"RESUMO MENSAL - {inicio.strftime('%m/%Y')}"

    if request.args.get('formato') == 'pdf':
        hoje = date.today()
        return _gerar_pdf(
            lambda: pdf.pdf_resumo_mensal(titulo, {'start': inicio, 'end': fim}, resumo,
                                          current_app.config['NOME_ESCOLA'], hoje),
            pdf.nome_arquivo('resumo_mensal', hoje),
            url_for('relatorios.index'),
        )
    return render_template('relatorios/resumo_mensal.html', titulo=titulo, inicio=inicio, fim=fim,
                           resumo=resumo, mes=inicio.strftime('%Y-%m'))
