# -*- coding: utf-8 -*-
"""Área do administrador: painel, alunos (com exportação CSV) e responsáveis."""

from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app, Response

from escola_web import api, agregacao, coleta, exportacao
from escola_web.api import Pagina
from escola_web.auth import papel_requerido
from escola_web.schemas import AlunoForm, ResponsavelForm, STATUS_ALUNO
from escola_web.utils import ErroAPI, format_date_br
from escola_web.views.crud import TelaCrud, Campo, Coluna, opcoes_de
from escola_web.views.financeiro import NOMES_STATUS as NOMES_COBRANCA

bp = Blueprint('admin', __name__, url_prefix='/admin')

NOMES_STATUS = {'active': 'Ativo', 'inactive': 'Inativo', 'transferred': 'Transferido'}
so_admin = papel_requerido('admin')

alunos = TelaCrud(
    'alunos', 'Aluno', api.alunos_admin,
    campos=[
        Campo('name', 'Nome', obrigatorio=True),
        Campo('registration_number', 'Matrícula'),
        Campo('birth_date', 'Data de nascimento', 'date'),
        Campo('cpf', 'CPF'),
        Campo('gender', 'Sexo', 'select', opcoes=[('male', 'Masculino'), ('female', 'Feminino')]),
        Campo('birth_place', 'Naturalidade'),
        Campo('status', 'Status', 'select', True, opcoes=[(s, NOMES_STATUS[s]) for s in STATUS_ALUNO]),
        Campo('school_class_id', 'Turma', 'select', origem=opcoes_de(api.turmas)),
        Campo('guardian_ids', 'Responsáveis', 'multiselect', origem=opcoes_de(api.responsaveis)),
    ],
    colunas=[
        Coluna('Matrícula', 'registration_number'),
        Coluna('Nome', 'name'),
        Coluna('Nascimento', 'birth_date', filtro=format_date_br),
        Coluna('Turma', 'school_class.name'),
        Coluna('Status', 'status', filtro=lambda v: NOMES_STATUS.get(v, v)),
    ],
    schema=AlunoForm,
    filtros=('search', 'status'),
    acoes=[('Ver', 'admin.alunos_detalhe', lambda a: True, 'get')],
    links=[('Exportar CSV', 'admin.alunos_exportar')],
).registrar(bp, so_admin)

responsaveis = TelaCrud(
    'responsaveis', 'Responsável', api.responsaveis,
    campos=[
        Campo('name', 'Nome', obrigatorio=True),
        Campo('email', 'E-mail', 'email', True),
        Campo('phone', 'Telefone'),
        Campo('cpf', 'CPF'),
        Campo('relationship', 'Parentesco'),
        Campo('emergency_phone', 'Telefone de emergência'),
        Campo('address', 'Endereço', 'textarea'),
    ],
    colunas=[
        Coluna('Nome', 'name', 'user.name'),
        Coluna('E-mail', 'email', 'user.email'),
        Coluna('Telefone', 'phone'),
        Coluna('Parentesco', 'relationship'),
    ],
    schema=ResponsavelForm,
    filtros=('search',),
).registrar(bp, so_admin)


@bp.route('/')
@so_admin
def painel():
    stats = {}
    try:
        stats = api.painel.admin() or {}
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao buscar painel do administrador: {e.mensagem}")
        flash("Não foi possível carregar as estatísticas.", "warning")
    stats = stats.get('stats', stats) if isinstance(stats, dict) else {}
    return render_template('admin/painel.html', stats=stats)


@bp.route('/alunos/exportar')
@so_admin
def alunos_exportar():
    busca = request.args.get('search', '')
    status = request.args.get('status', '')
    try:
        corpo = api.alunos_admin.exportar({'search': busca, 'status': status})
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao buscar alunos para exportação: {e.mensagem}")
        flash(f"Erro ao exportar alunos: {e.mensagem}", "error")
        return redirect(url_for('admin.alunos_list', search=busca, status=status))

    lista = Pagina.de_resposta(corpo, 'students').itens
    if not lista:
        flash("Nenhum aluno encontrado para exportar com os filtros atuais.", "info")
        return redirect(url_for('admin.alunos_list', search=busca, status=status))

    return Response(
        exportacao.csv_alunos(lista),
        mimetype='text/csv',
        headers={"Content-Disposition": f"attachment;filename={exportacao.nome_arquivo_alunos()}"}
    )


@bp.route('/alunos/<int:id>')
@so_admin
def alunos_detalhe(id):
    """Ficha do aluno: dados, boletim, frequência e mensalidades."""
    try:
        aluno, presencas, notas, mensalidades = coleta.em_paralelo([
            lambda: api.alunos_admin.obter(id),
            coleta.ou_vazio(lambda: coleta.presencas_do_aluno(id), []),
            coleta.ou_vazio(lambda: coleta.notas_do_aluno(id), []),
            coleta.ou_vazio(lambda: api.mensalidades.paginar({'student_id': id}).itens, []),
        ])
    except ErroAPI as e:
        current_app.logger.error(f"Erro ao carregar aluno {id}: {e.mensagem}")
        flash("Aluno não encontrado." if e.nao_encontrado else e.mensagem, "error")
        return redirect(url_for('admin.alunos_list'))

    return render_template(
        'admin/aluno.html', aluno=aluno,
        boletim=agregacao.boletim_aluno(notas),
        frequencia=agregacao.resumo_frequencia(presencas),
        mensalidades=mensalidades,
        totais=agregacao.totais_por_status(mensalidades),
        nomes_status=NOMES_STATUS, nomes_cobranca=NOMES_COBRANCA,
    )
