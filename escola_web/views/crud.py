# -*- coding: utf-8 -*-
"""
Telas de cadastro simples (listar, novo, editar, salvar, excluir).

Cada ``TelaCrud`` registra as rotas num blueprint e usa os templates
``crud/lista.html`` e ``crud/form.html``. Depois de qualquer alteração a
view redireciona para a listagem, que busca tudo de novo na API.
"""

from flask import render_template, request, redirect, url_for, flash, current_app
from pydantic import ValidationError

from escola_web.api import Pagina
from escola_web.schemas import payload, erros_validacao
from escola_web.utils import ErroAPI, campo


def camel(nome):
    primeiro, *resto = nome.split('_')
    return primeiro + ''.join(p.capitalize() for p in resto)


class Campo:
    def __init__(self, nome, rotulo, tipo='text', obrigatorio=False, opcoes=None, origem=None):
        self.nome = nome
        self.rotulo = rotulo
        self.tipo = tipo  # text, number, date, email, textarea, select, multiselect, checkbox
        self.obrigatorio = obrigatorio
        self.opcoes = opcoes or []
        # origem: função que busca na API as opções [(valor, rótulo)] do select
        self.origem = origem

    def valor(self, item):
        if not item:
            return '' if self.tipo != 'multiselect' else []
        valor = campo(item, self.nome, camel(self.nome))
        if self.tipo == 'multiselect':
            return [str(v) for v in (valor or [])]
        if self.tipo == 'date' and isinstance(valor, str):
            return valor[:10]
        return '' if valor is None else valor


class Coluna:
    def __init__(self, rotulo, *chaves, filtro=None):
        self.rotulo = rotulo
        self.chaves = chaves
        self.filtro = filtro

    def valor(self, item):
        for chave in self.chaves:
            valor = item
            # "school_class.name" navega em objetos aninhados
            for parte in chave.split('.'):
                valor = campo(valor, parte, camel(parte))
            if valor is not None:
                return self.filtro(valor) if self.filtro else valor
        return None


class TelaCrud:
    def __init__(self, nome, titulo, recurso, campos, colunas, schema=None, filtros=(),
                 bloqueio_exclusao=None, acoes=(), links=(), paginada=True):
        self.nome = nome
        self.titulo = titulo
        self.recurso = recurso
        self.campos = campos
        self.colunas = colunas
        self.schema = schema
        self.filtros = filtros
        # bloqueio_exclusao(item) -> mensagem quando o item não pode ser excluído
        self.bloqueio_exclusao = bloqueio_exclusao
        # acoes: [(rotulo, endpoint, condicao(item), 'get' | 'post')] exibidas em cada linha
        self.acoes = acoes
        # links: [(rotulo, endpoint)] no topo da listagem, recebem os filtros atuais
        self.links = links
        self.paginada = paginada
        self.blueprint = None

    def registrar(self, bp, decorator=None):
        self.blueprint = bp.name
        rotas = (
            (f'/{self.nome}', 'list', self.listar, ['GET']),
            (f'/{self.nome}/novo', 'novo', self.formulario, ['GET']),
            (f'/{self.nome}/<int:id>/editar', 'editar', self.formulario, ['GET']),
            (f'/{self.nome}/salvar', 'salvar', self.salvar, ['POST']),
            (f'/{self.nome}/<int:id>/excluir', 'excluir', self.excluir, ['POST']),
        )
        for regra, sufixo, view, metodos in rotas:
            if decorator:
                view = decorator(view)
            bp.add_url_rule(regra, f'{self.nome}_{sufixo}', view, methods=metodos)
        return self

    def endpoint(self, sufixo):
        return f'{self.blueprint}.{self.nome}_{sufixo}'

    def bloqueio(self, item):
        return self.bloqueio_exclusao(item) if self.bloqueio_exclusao else None

    # --- views ---

    def listar(self):
        page = request.args.get('page', 1, type=int)
        filtros = {f: request.args.get(f, '') for f in self.filtros}
        params = dict(filtros)
        if self.paginada:
            params.update({'page': page, 'per_page': current_app.config.get('ITENS_POR_PAGINA', 20)})

        try:
            pagina = self.recurso.paginar(params)
        except ErroAPI as e:
            current_app.logger.error(f"Erro ao listar {self.nome}: {e.mensagem}")
            flash(e.mensagem, "error")
            pagina = Pagina([], {})

        return render_template('crud/lista.html', tela=self, pagina=pagina, page=page, filtros=filtros)

    def formulario(self, id=None):
        item = None
        if id is not None:
            try:
                item = self.recurso.obter(id)
            except ErroAPI as e:
                flash("Registro não encontrado." if e.nao_encontrado else e.mensagem, "error")
                return redirect(url_for(self.endpoint('list')))

        opcoes = {}
        for c in self.campos:
            if c.origem:
                try:
                    opcoes[c.nome] = c.origem()
                except ErroAPI as e:
                    current_app.logger.error(f"Erro ao carregar opções de {c.nome}: {e.mensagem}")
                    opcoes[c.nome] = []
            else:
                opcoes[c.nome] = c.opcoes
        return render_template('crud/form.html', tela=self, item=item, opcoes=opcoes)

    def dados_formulario(self, form):
        dados = {}
        for c in self.campos:
            if c.tipo == 'checkbox':
                dados[c.nome] = c.nome in form
            elif c.tipo == 'multiselect':
                dados[c.nome] = [v for v in form.getlist(c.nome) if v]
            else:
                valor = (form.get(c.nome) or '').strip()
                if valor != '':
                    dados[c.nome] = valor
        return dados

    def validar(self, dados):
        """Retorna (payload, erro). Nada é enviado à API se houver erro."""
        if self.schema:
            try:
                return payload(self.schema(**dados)), None
            except ValidationError as e:
                return None, erros_validacao(e)
        faltando = [c.rotulo for c in self.campos if c.obrigatorio and dados.get(c.nome) in (None, '', [])]
        if faltando:
            return None, "Preencha os campos obrigatórios: " + ", ".join(faltando)
        return dados, None

    def salvar(self):
        item_id = request.form.get("id")
        dados, erro = self.validar(self.dados_formulario(request.form))
        if erro:
            flash(erro, "error")
            if item_id:
                return redirect(url_for(self.endpoint('editar'), id=item_id))
            return redirect(url_for(self.endpoint('novo')))

        try:
            if item_id:
                self.recurso.atualizar(item_id, dados)
                flash(f"{self.titulo} atualizado com sucesso!", "success")
            else:
                self.recurso.criar(dados)
                flash(f"{self.titulo} cadastrado com sucesso!", "success")
        except ErroAPI as e:
            current_app.logger.error(f"Erro ao salvar {self.nome}: {e.mensagem}")
            flash(f"Erro ao salvar: {e.mensagem}", "error")
        return redirect(url_for(self.endpoint('list')))

    def excluir(self, id):
        try:
            if self.bloqueio_exclusao:
                motivo = self.bloqueio(self.recurso.obter(id))
                if motivo:
                    flash(motivo, "error")
                    return redirect(url_for(self.endpoint('list')))
            self.recurso.excluir(id)
            flash(f"{self.titulo} excluído com sucesso!", "success")
            current_app.logger.info(f"{self.nome} {id} excluído")
        except ErroAPI as e:
            current_app.logger.error(f"Erro ao excluir {self.nome} {id}: {e.mensagem}")
            flash(f"Erro ao excluir: {e.mensagem}", "error")
        return redirect(url_for(self.endpoint('list')))


def opcoes_de(recurso, rotulo='name', params=None):
    """Fábrica de ``origem`` para selects: [(id, nome)] do recurso."""
    def buscar():
        itens = Pagina.de_resposta(recurso.listar(params or {'per_page': 1000}), recurso.chave_lista).itens
        return [(str(i.get('id')), i.get(rotulo, '')) for i in itens]
    return buscar
