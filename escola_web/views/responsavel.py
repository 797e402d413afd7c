# -*- coding: utf-8 -*-
"""Painel do responsável: resumo dos filhos, detalhe de cada filho e mensalidades."""

from datetime import date

from flask import Blueprint, render_template, redirect, url_for, flash, current_app

from escola_web import api, agregacao, coleta
from escola_web.auth import papel_requerido, usuario_atual
from escola_web.utils import ErroAPI

bp = Blueprint('responsavel', __name__, url_prefix='/guardian-dashboard')


@bp.before_request
@papel_requerido('guardian')
def somente_responsavel():
    pass


def responsavel_id():
    usuario = usuario_atual()
    return (usuario.get('guardian') or {}).get('id') or usuario.get('guardian_id')


@bp.route('/')
def painel():
    filhos = []
    if not responsavel_id():
        current_app.logger.warning("Usuário responsável sem guardian id na sessão")
        flash("Cadastro de responsável não encontrado.", "warning")
    else:
        try:
            filhos = coleta.resumo_filhos(responsavel_id(), date.today())
        except ErroAPI as e:
            current_app.logger.error(f"Erro ao carregar filhos do responsável: {e.mensagem}")
            flash(f"Erro ao carregar dados dos filhos: {e.mensagem}", "error")

    return render_template('responsavel/painel.html', filhos=filhos,
                           estatisticas=coleta.estatisticas_gerais_filhos(filhos))


@bp.route('/filhos/<int:id>')
def filho(id):
    try:
        aluno, notas, presencas, ocorrencias = coleta.em_paralelo([
            lambda: api.alunos.obter(id),
            lambda: coleta.notas_do_aluno(id),
            lambda: coleta.presencas_do_aluno(id),
            lambda: coleta.ocorrencias_do_aluno(id),
        ])
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao carregar aluno {id}: {e.mensagem}")
        flash("Aluno não encontrado." if e.nao_encontrado else e.mensagem, "error")
        return redirect(url_for('responsavel.painel'))

    return render_template('responsavel/filho.html', aluno=aluno,
                           boletim=agregacao.boletim_aluno(notas),
                           frequencia=agregacao.resumo_frequencia(presencas),
                           ocorrencias=sorted(ocorrencias, key=lambda o: o.get('date') or '', reverse=True))


@bp.route('/mensalidades')
def mensalidades():
    por_filho = []
    if responsavel_id():
        try:
            filhos = api.responsaveis.alunos(responsavel_id())
            listas = coleta.em_paralelo(
                [(lambda f=f: api.mensalidades.paginar({'student_id': f['id']}).itens) for f in filhos]
            )
            por_filho = [{'student': f, 'tuitions': lista} for f, lista in zip(filhos, listas)]
        except ErroAPI as e:
            current_app.logger.error(f"Erro ao carregar mensalidades: {e.mensagem}")
            flash(f"Erro ao carregar mensalidades: {e.mensagem}", "error")
    return render_template('responsavel/mensalidades.html', por_filho=por_filho)
