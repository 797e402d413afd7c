# -*- coding: utf-8 -*-
"""
Diários de classe: cadastro, detalhe, notas, aulas, presenças e ocorrências.
"""

from datetime import date

from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app
from pydantic import ValidationError

from escola_web import api, agregacao, coleta
from escola_web.schemas import (NotaForm, AulaForm, OcorrenciaForm, PresencaItem, payload, erros_validacao,
                                STATUS_PRESENCA, TIPOS_OCORRENCIA, GRAVIDADES)
from escola_web.utils import ErroAPI, campo
from escola_web.views.crud import TelaCrud, Campo, Coluna, opcoes_de
from escola_web.views.escola import somente_equipe

bp = Blueprint('diarios', __name__, url_prefix='/dashboard')
bp.before_request(somente_equipe)

NOMES_STATUS_AULA = {'planned': 'Planejada', 'completed': 'Concluída', 'cancelled': 'Cancelada'}
NOMES_PRESENCA = {'present': 'Presente', 'absent': 'Falta', 'late': 'Atraso', 'justified': 'Justificada'}
NOMES_OCORRENCIA = {'disciplinary': 'Disciplinar', 'medical': 'Médica', 'positive': 'Positiva', 'other': 'Outra'}
NOMES_GRAVIDADE = {'low': 'Baixa', 'medium': 'Média', 'high': 'Alta'}

diarios = TelaCrud(
    'diarios', 'Diário', api.diarios,
    campos=[
        Campo('name', 'Nome', obrigatorio=True),
        Campo('teacher_id', 'Professor', 'select', True, origem=opcoes_de(api.professores)),
        Campo('school_class_id', 'Turma', 'select', True, origem=opcoes_de(api.turmas)),
        Campo('subject_id', 'Disciplina', 'select', True, origem=opcoes_de(api.disciplinas)),
        Campo('academic_term_id', 'Etapa', 'select', True, origem=opcoes_de(api.etapas)),
        Campo('description', 'Descrição', 'textarea'),
    ],
    colunas=[
        Coluna('Nome', 'name'),
        Coluna('Turma', 'school_class.name'),
        Coluna('Disciplina', 'subject.name'),
        Coluna('Professor', 'teacher.name', 'teacher.user.name'),
        Coluna('Etapa', 'academic_term.name'),
    ],
    filtros=('teacher_id', 'school_class_id', 'academic_term_id'),
    acoes=[('Abrir', 'diarios.detalhe', lambda d: True, 'get')],
).registrar(bp)


@bp.route('/diarios/<int:id>')
def detalhe(id):
    try:
        diario, estatisticas, aulas = coleta.em_paralelo([
            lambda: api.diarios.obter(id),
            coleta.ou_vazio(lambda: api.diarios.estatisticas(id), {}),
            coleta.ou_vazio(lambda: api.diarios.aulas(id), []),
        ])
    except ErroAPI as e:
        flash("Diário não encontrado." if e.nao_encontrado else e.mensagem, "error")
        return redirect(url_for('diarios.diarios_list'))

    estatisticas = campo(estatisticas, 'statistics', padrao=estatisticas) or {}
    return render_template('diarios/detalhe.html', diario=diario, estatisticas=estatisticas,
                           aulas=aulas[:5], nomes_status=NOMES_STATUS_AULA)


# --- Notas ---

@bp.route('/diarios/<int:id>/notas')
def notas(id):
    try:
        diario, notas_alunos, resumo = coleta.carregar_notas_diario(id)
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao carregar notas do diário {id}: {e.mensagem}")
        flash(f"Erro ao carregar notas: {e.mensagem}", "error")
        return redirect(url_for('diarios.diarios_list'))

    return render_template('diarios/notas.html', diario=diario, notas_alunos=notas_alunos,
                           resumo=resumo, hoje=date.today().isoformat())


@bp.route('/diarios/<int:id>/notas', methods=['POST'])
def notas_criar(id):
    dados = {k: v for k, v in request.form.items() if k in NotaForm.model_fields}
    dados['diary_id'] = id
    try:
        nota = NotaForm(**dados)
    except ValidationError as e:
        flash(f"Nota inválida: {erros_validacao(e)}", "error")
        return redirect(url_for('diarios.notas', id=id))

    try:
        api.notas.criar(payload(nota))
        flash("Nota lançada com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao lançar nota no diário {id}: {e.mensagem}")
        flash(f"Erro ao lançar nota: {e.mensagem}", "error")
    return redirect(url_for('diarios.notas', id=id))


@bp.route('/diarios/<int:id>/notas/<int:nota_id>/excluir', methods=['POST'])
def notas_excluir(id, nota_id):
    try:
        api.notas.excluir(nota_id)
        flash("Nota excluída com sucesso!", "success")
    except ErroAPI as e:
        flash(f"Erro ao excluir nota: {e.mensagem}", "error")
    return redirect(url_for('diarios.notas', id=id))


# --- Aulas ---

@bp.route('/diarios/<int:id>/aulas')
def aulas(id):
    status = request.args.get('status', '')
    try:
        diario, lista = coleta.em_paralelo([
            lambda: api.diarios.obter(id),
            lambda: api.diarios.aulas(id, {'status': status}),
        ])
    except ErroAPI as e:
        flash(f"Erro ao carregar aulas: {e.mensagem}", "error")
        return redirect(url_for('diarios.diarios_list'))
    return render_template('diarios/aulas.html', diario=diario, aulas=lista, status=status,
                           nomes_status=NOMES_STATUS_AULA)


@bp.route('/diarios/<int:id>/aulas/nova', methods=['GET', 'POST'])
@bp.route('/diarios/<int:id>/aulas/<int:aula_id>/editar', methods=['GET', 'POST'])
def aula_form(id, aula_id=None):
    if request.method == 'POST':
        try:
            aula = AulaForm(**request.form.to_dict())
        except ValidationError as e:
            flash(f"Aula inválida: {erros_validacao(e)}", "error")
            return redirect(request.url)

        try:
            if aula_id:
                api.diarios.atualizar_aula(id, aula_id, payload(aula))
                flash("Aula atualizada com sucesso!", "success")
            else:
                api.diarios.criar_aula(id, payload(aula))
                flash("Aula criada com sucesso!", "success")
        except ErroAPI as e:
            current_app.logger.error(f"Erro ao salvar aula do diário {id}: {e.mensagem}")
            flash(f"Erro ao salvar aula: {e.mensagem}", "error")
        return redirect(url_for('diarios.aulas', id=id))

    aula = None
    if aula_id:
        try:
            aula = api.diarios.aula(id, aula_id)
        except ErroAPI as e:
            flash("Aula não encontrada." if e.nao_encontrado else e.mensagem, "error")
            return redirect(url_for('diarios.aulas', id=id))
    return render_template('diarios/aula_form.html', diario_id=id, aula=aula)


def _acao_aula(id, aula_id, acao, mensagem):
    try:
        acao(id, aula_id)
        flash(mensagem, "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro na aula {aula_id} do diário {id}: {e.mensagem}")
        flash(f"Erro: {e.mensagem}", "error")
    return redirect(url_for('diarios.aulas', id=id))


@bp.route('/diarios/<int:id>/aulas/<int:aula_id>/excluir', methods=['POST'])
def aula_excluir(id, aula_id):
    return _acao_aula(id, aula_id, api.diarios.excluir_aula, "Aula excluída com sucesso!")


@bp.route('/diarios/<int:id>/aulas/<int:aula_id>/concluir', methods=['POST'])
def aula_concluir(id, aula_id):
    return _acao_aula(id, aula_id, api.diarios.concluir_aula, "Aula concluída!")


@bp.route('/diarios/<int:id>/aulas/<int:aula_id>/cancelar', methods=['POST'])
def aula_cancelar(id, aula_id):
    return _acao_aula(id, aula_id, api.diarios.cancelar_aula, "Aula cancelada.")


# --- Presenças ---

@bp.route('/diarios/<int:id>/aulas/<int:aula_id>/presencas')
def presencas(id, aula_id):
    try:
        aula, alunos, existentes = coleta.em_paralelo([
            lambda: api.diarios.aula(id, aula_id),
            lambda: api.diarios.alunos(id),
            lambda: api.diarios.presencas_aula(id, aula_id),
        ])
    except ErroAPI as e:
        flash(f"Erro ao carregar presenças: {e.mensagem}", "error")
        return redirect(url_for('diarios.aulas', id=id))

    por_aluno = {aluno_id: lista[0] for aluno_id, lista in agregacao.agrupar_por_aluno(existentes).items()}
    linhas = []
    for aluno in alunos:
        registro = por_aluno.get(aluno.get('id')) or {}
        linhas.append({
            'student': aluno,
            'attendance_id': registro.get('id'),
            'status': registro.get('status') or 'present',
            'observation': registro.get('observation') or '',
        })
    return render_template('diarios/presencas.html', diario_id=id, aula=aula, linhas=linhas,
                           resumo=agregacao.resumo_frequencia(existentes),
                           status_presenca=STATUS_PRESENCA, nomes_presenca=NOMES_PRESENCA)


@bp.route('/diarios/<int:id>/aulas/<int:aula_id>/presencas', methods=['POST'])
def presencas_salvar(id, aula_id):
    try:
        itens = [
            PresencaItem(
                id=request.form.get(f'attendance_id_{aluno_id}') or None,
                student_id=aluno_id,
                status=request.form.get(f'status_{aluno_id}', 'present'),
                observation=request.form.get(f'observation_{aluno_id}'),
            )
            for aluno_id in request.form.getlist('student_ids')
        ]
    except ValidationError as e:
        flash(f"Presenças inválidas: {erros_validacao(e)}", "error")
        return redirect(url_for('diarios.presencas', id=id, aula_id=aula_id))

    try:
        api.diarios.atualizar_presencas(id, aula_id, [payload(i) for i in itens])
        flash("Presenças salvas com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao salvar presenças da aula {aula_id}: {e.mensagem}")
        flash(f"Erro ao salvar presenças: {e.mensagem}", "error")
    return redirect(url_for('diarios.presencas', id=id, aula_id=aula_id))


# --- Ocorrências ---

@bp.route('/diarios/<int:id>/ocorrencias')
def ocorrencias(id):
    try:
        diario, ocorrencias_alunos, resumo = coleta.carregar_ocorrencias_diario(id)
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao carregar ocorrências do diário {id}: {e.mensagem}")
        flash(f"Erro ao carregar ocorrências: {e.mensagem}", "error")
        return redirect(url_for('diarios.diarios_list'))

    todas = [o for a in ocorrencias_alunos for o in a['occurrences']]
    return render_template('diarios/ocorrencias.html', diario=diario, ocorrencias_alunos=ocorrencias_alunos,
                           resumo=resumo, estatisticas=agregacao.estatisticas_ocorrencias(todas),
                           tipos=TIPOS_OCORRENCIA, gravidades=GRAVIDADES, nomes_tipo=NOMES_OCORRENCIA,
                           nomes_gravidade=NOMES_GRAVIDADE, hoje=date.today().isoformat())


@bp.route('/diarios/<int:id>/ocorrencias', methods=['POST'])
def ocorrencias_criar(id):
    dados = {k: v for k, v in request.form.items() if k in OcorrenciaForm.model_fields}
    dados['notified_guardians'] = 'notified_guardians' in request.form
    dados['diary_id'] = id
    try:
        ocorrencia = OcorrenciaForm(**dados)
    except ValidationError as e:
        flash(f"Ocorrência inválida: {erros_validacao(e)}", "error")
        return redirect(url_for('diarios.ocorrencias', id=id))

    try:
        api.ocorrencias.criar(payload(ocorrencia))
        flash("Ocorrência registrada com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao registrar ocorrência no diário {id}: {e.mensagem}")
        flash(f"Erro ao registrar ocorrência: {e.mensagem}", "error")
    return redirect(url_for('diarios.ocorrencias', id=id))
