# -*- coding: utf-8 -*-
"""
Painel da escola e cadastros básicos: etapas (períodos letivos), turmas,
séries, níveis de ensino, disciplinas e professores.
"""

from flask import Blueprint, render_template, redirect, url_for, flash, current_app

from escola_web import api, agregacao, coleta
from escola_web.auth import login_required, usuario_atual, home_do_usuario
from escola_web.schemas import EtapaForm, TIPOS_ETAPA
from escola_web.utils import ErroAPI, campo, format_date_br
from escola_web.views.crud import TelaCrud, Campo, Coluna, opcoes_de

bp = Blueprint('escola', __name__, url_prefix='/dashboard')

NOMES_TIPO_ETAPA = {'bimester': 'Bimestre', 'quarter': 'Trimestre', 'semester': 'Semestre'}
PERIODOS = [('morning', 'Manhã'), ('afternoon', 'Tarde'), ('evening', 'Noite'), ('full_time', 'Integral')]
NOMES_STATUS_SALARIO = {'pending': 'Pendente', 'paid': 'Pago', 'cancelled': 'Cancelado'}


@bp.before_request
@login_required
def somente_equipe():
    # Professores e responsáveis têm painéis próprios
    if usuario_atual().get('role') in ('teacher', 'guardian'):
        return redirect(home_do_usuario())


def etapa_ativa(etapa):
    return bool(campo(etapa, 'active', 'isActive', 'is_active', padrao=False))


def bloqueio_etapa(etapa):
    if etapa_ativa(etapa):
        return "Não é possível excluir a etapa ativa. Ative outra etapa antes."
    return None


def _sim_nao(valor):
    return "Sim" if valor else "Não"


etapas = TelaCrud(
    'etapas', 'Etapa', api.etapas,
    campos=[
        Campo('name', 'Nome', obrigatorio=True),
        Campo('term_type', 'Tipo', 'select', True, opcoes=[(t, NOMES_TIPO_ETAPA[t]) for t in TIPOS_ETAPA]),
        Campo('year', 'Ano', 'number', True),
        Campo('start_date', 'Início', 'date', True),
        Campo('end_date', 'Fim', 'date', True),
    ],
    colunas=[
        Coluna('Nome', 'name'),
        Coluna('Tipo', 'term_type', filtro=lambda v: NOMES_TIPO_ETAPA.get(v, v)),
        Coluna('Ano', 'year'),
        Coluna('Início', 'start_date', filtro=format_date_br),
        Coluna('Fim', 'end_date', filtro=format_date_br),
        Coluna('Ativa', 'active', 'is_active', filtro=_sim_nao),
    ],
    schema=EtapaForm,
    filtros=('year',),
    bloqueio_exclusao=bloqueio_etapa,
    acoes=[('Ativar', 'escola.etapas_ativar', lambda e: not etapa_ativa(e), 'post')],
    paginada=False,
).registrar(bp)

turmas = TelaCrud(
    'turmas', 'Turma', api.turmas,
    campos=[
        Campo('name', 'Nome', obrigatorio=True),
        Campo('section', 'Turma/Seção'),
        Campo('period', 'Turno', 'select', opcoes=PERIODOS),
        Campo('max_students', 'Capacidade', 'number'),
        Campo('grade_level_id', 'Série', 'select', True, origem=opcoes_de(api.series)),
        Campo('academic_term_id', 'Etapa', 'select', True, origem=opcoes_de(api.etapas)),
        Campo('main_teacher_id', 'Professor principal', 'select', origem=opcoes_de(api.professores)),
    ],
    colunas=[
        Coluna('Nome', 'name'),
        Coluna('Série', 'grade_level.name'),
        Coluna('Turno', 'period', filtro=lambda v: dict(PERIODOS).get(v, v)),
        Coluna('Capacidade', 'max_students'),
        Coluna('Professor', 'main_teacher.name'),
    ],
    filtros=('search', 'academic_term_id'),
).registrar(bp)

series = TelaCrud(
    'series', 'Série', api.series,
    campos=[
        Campo('name', 'Nome', obrigatorio=True),
        Campo('order', 'Ordem', 'number'),
        Campo('education_level_id', 'Nível de ensino', 'select', True, origem=opcoes_de(api.niveis_ensino)),
    ],
    colunas=[Coluna('Nome', 'name'), Coluna('Ordem', 'order'), Coluna('Nível', 'education_level.name')],
    paginada=False,
).registrar(bp)

niveis = TelaCrud(
    'niveis', 'Nível de ensino', api.niveis_ensino,
    campos=[Campo('name', 'Nome', obrigatorio=True), Campo('description', 'Descrição', 'textarea')],
    colunas=[Coluna('Nome', 'name'), Coluna('Descrição', 'description')],
    paginada=False,
).registrar(bp)

disciplinas = TelaCrud(
    'disciplinas', 'Disciplina', api.disciplinas,
    campos=[
        Campo('name', 'Nome', obrigatorio=True),
        Campo('code', 'Código'),
        Campo('workload', 'Carga horária', 'number'),
        Campo('description', 'Descrição', 'textarea'),
    ],
    colunas=[Coluna('Nome', 'name'), Coluna('Código', 'code'), Coluna('Carga horária', 'workload')],
    filtros=('search',),
).registrar(bp)

professores = TelaCrud(
    'professores', 'Professor', api.professores,
    campos=[
        Campo('name', 'Nome', obrigatorio=True),
        Campo('email', 'E-mail', 'email', True),
        Campo('cpf', 'CPF'),
        Campo('phone', 'Telefone'),
        Campo('specialization', 'Especialização'),
        Campo('hire_date', 'Data de contratação', 'date'),
        Campo('salary', 'Salário', 'number'),
    ],
    colunas=[
        Coluna('Nome', 'name', 'user.name'),
        Coluna('E-mail', 'email', 'user.email'),
        Coluna('Telefone', 'phone'),
        Coluna('Especialização', 'specialization'),
    ],
    filtros=('search',),
    acoes=[('Ver', 'escola.professores_detalhe', lambda p: True, 'get')],
).registrar(bp)


@bp.route('/etapas/<int:id>/ativar', methods=['POST'], endpoint='etapas_ativar')
def etapas_ativar(id):
    try:
        api.etapas.ativar(id)
        flash("Etapa ativada com sucesso!", "success")
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao ativar etapa {id}: {e.mensagem}")
        flash(f"Erro ao ativar etapa: {e.mensagem}", "error")
    return redirect(url_for('escola.etapas_list'))


@bp.route('/professores/<int:id>')
def professores_detalhe(id):
    try:
        professor, salarios = coleta.em_paralelo([
            lambda: api.professores.obter(id),
            coleta.ou_vazio(lambda: api.salarios.paginar({'teacher_id': id}).itens, []),
        ])
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao carregar professor {id}: {e.mensagem}")
        flash("Professor não encontrado." if e.nao_encontrado else e.mensagem, "error")
        return redirect(url_for('escola.professores_list'))

    return render_template(
        'escola/professor.html', professor=professor, salarios=salarios,
        turmas=campo(professor, 'classes', 'school_classes', padrao=[]),
        disciplinas=campo(professor, 'subjects', padrao=[]),
        totais=agregacao.totais_por_status(salarios), nomes_status=NOMES_STATUS_SALARIO,
    )


def _total(recurso, params=None):
    pagina = recurso.paginar({'per_page': 1, **(params or {})})
    return pagina.meta.get('total_count') or pagina.meta.get('total') or len(pagina)


@bp.route('/')
def painel():
    """Visão geral da escola."""
    stats = {'total_alunos': 0, 'total_professores': 0, 'total_turmas': 0, 'total_diarios': 0}
    etapa = None
    try:
        (stats['total_alunos'], stats['total_professores'], stats['total_turmas'],
         stats['total_diarios'], lista_etapas) = coleta.em_paralelo([
            lambda: _total(api.alunos, {'status': 'active'}),
            lambda: _total(api.professores),
            lambda: _total(api.turmas),
            lambda: _total(api.diarios),
            lambda: api.etapas.paginar().itens,
        ])
        etapa = next((e for e in lista_etapas if etapa_ativa(e)), None)
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao buscar estatísticas do painel: {e.mensagem}")
        flash("Não foi possível carregar todas as estatísticas.", "warning")

    return render_template('escola/painel.html', stats=stats, etapa=etapa)
