# -*- coding: utf-8 -*-
"""Painel do professor: diários, estatísticas do diário, ocorrências e salários."""

from datetime import date

from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app

from escola_web import api, agregacao, coleta
from escola_web.api import Pagina
from escola_web.auth import papel_requerido, usuario_atual
from escola_web.schemas import TIPOS_OCORRENCIA, GRAVIDADES
from escola_web.utils import ErroAPI, campo

bp = Blueprint('professor', __name__, url_prefix='/teacher-dashboard')


@bp.before_request
@papel_requerido('teacher')
def somente_professor():
    pass


def professor_id():
    usuario = usuario_atual()
    return (usuario.get('teacher') or {}).get('id') or usuario.get('teacher_id')


def sem_cadastro():
    """True (com aviso) quando a sessão não tem teacher id; nesse caso nada é buscado."""
    if professor_id():
        return False
    current_app.logger.warning("Usuário professor sem teacher id na sessão")
    flash("Cadastro de professor não encontrado.", "warning")
    return True


def _diarios_do_professor():
    return Pagina.de_resposta(api.diarios.listar({'teacher_id': professor_id()}), 'diaries').itens


@bp.route('/')
def painel():
    stats = {'total_diarios': 0, 'total_turmas': 0, 'aulas_hoje': 0, 'ocorrencias_recentes': 0}
    aulas_hoje = []
    hoje = date.today()
    if sem_cadastro():
        return render_template('professor/painel.html', stats=stats, aulas_hoje=aulas_hoje)
    try:
        diarios = _diarios_do_professor()
        por_diario = coleta.em_paralelo(
            [(lambda d=d: api.diarios.aulas(d['id'], {'date': hoje.isoformat()})) for d in diarios]
        )
        for diario, aulas in zip(diarios, por_diario):
            for aula in aulas:
                aulas_hoje.append({**aula, 'diary': diario})
        ocorrencias = Pagina.de_resposta(
            api.ocorrencias.listar({'teacher_id': professor_id()}), 'occurrences').itens
        stats.update({
            'total_diarios': len(diarios),
            'total_turmas': len({campo(d, 'school_class_id', 'schoolClassId') or
                                 (d.get('school_class') or {}).get('id') for d in diarios}),
            'aulas_hoje': len(aulas_hoje),
            'ocorrencias_recentes': agregacao.estatisticas_ocorrencias(ocorrencias, hoje)['this_month'],
        })
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao carregar painel do professor: {e.mensagem}")
        flash("Não foi possível carregar todas as estatísticas.", "warning")

    return render_template('professor/painel.html', stats=stats, aulas_hoje=aulas_hoje)


@bp.route('/diarios')
def diarios():
    lista = []
    if not sem_cadastro():
        try:
            lista = _diarios_do_professor()
        except ErroAPI as e:
            flash(f"Erro ao carregar diários: {e.mensagem}", "error")
    return render_template('professor/diarios.html', diarios=lista)


@bp.route('/diarios/<int:id>')
def diario(id):
    if sem_cadastro():
        return redirect(url_for('professor.painel'))
    try:
        diario, alunos, aulas, notas = coleta.em_paralelo([
            lambda: api.diarios.obter(id),
            lambda: api.diarios.alunos(id),
            lambda: api.diarios.aulas(id),
            lambda: Pagina.de_resposta(api.notas.listar({'diary_id': id}), 'grades').itens,
        ])
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao carregar diário {id}: {e.mensagem}")
        flash("Diário não encontrado." if e.nao_encontrado else e.mensagem, "error")
        return redirect(url_for('professor.diarios'))

    return render_template(
        'professor/diario.html', diario=diario, alunos=alunos, aulas=aulas,
        estatisticas_aulas=agregacao.estatisticas_aulas(aulas, len(alunos)),
        estatisticas_notas=agregacao.estatisticas_notas(notas),
        distribuicao=agregacao.distribuicao_notas(notas),
    )


@bp.route('/ocorrencias')
def ocorrencias():
    filtros = {
        'occurrence_type': request.args.get('occurrence_type', ''),
        'severity': request.args.get('severity', ''),
        'date': request.args.get('date', ''),
    }
    lista = []
    if not sem_cadastro():
        try:
            lista = Pagina.de_resposta(
                api.ocorrencias.listar({'teacher_id': professor_id(), **filtros}), 'occurrences').itens
        except ErroAPI as e:
            flash(f"Erro ao carregar ocorrências: {e.mensagem}", "error")
    return render_template('professor/ocorrencias.html', ocorrencias=lista, filtros=filtros,
                           estatisticas=agregacao.estatisticas_ocorrencias(lista),
                           tipos=TIPOS_OCORRENCIA, gravidades=GRAVIDADES)


@bp.route('/salarios')
def salarios():
    if sem_cadastro():
        return render_template('professor/salarios.html', salarios=[])
    try:
        lista = api.salarios.paginar({'teacher_id': professor_id()}).itens
    except ErroAPI as e:
        flash(f"Erro ao carregar salários: {e.mensagem}", "error")
        lista = []
    return render_template('professor/salarios.html', salarios=lista)
