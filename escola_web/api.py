# -*- coding: utf-8 -*-
"""
Camada cliente da API REST da escola.

Cada recurso expõe as operações de CRUD (listar, obter, criar, atualizar,
excluir) e as ações específicas do recurso. As funções retornam o JSON da
API; erros propagam como ErroAPI para a view tratar com flash().
"""

from escola_web.utils import api_request, campo


class Pagina:
    """Resposta de listagem normalizada: itens + metadados de paginação."""

    def __init__(self, itens, meta=None):
        self.itens = itens
        self.meta = meta or {}

    @classmethod
    def de_resposta(cls, corpo, chave=None):
        """
        Aceita os três formatos devolvidos pela API:
        lista pura, ``{data, meta}`` e ``{<recurso>: [...], meta}``.
        """
        if corpo is None:
            return cls([], {})
        if isinstance(corpo, list):
            return cls(corpo, {})
        if not isinstance(corpo, dict):
            return cls([], {})

        meta = corpo.get("meta") or corpo.get("pagination") or {}
        itens = None
        if chave and isinstance(corpo.get(chave), list):
            itens = corpo[chave]
        elif isinstance(corpo.get("data"), list):
            itens = corpo["data"]
        else:
            for valor in corpo.values():
                if isinstance(valor, list):
                    itens = valor
                    break
        return cls(itens or [], meta)

    @property
    def pagina_atual(self):
        return campo(self.meta, "current_page", "currentPage")

    @property
    def total_paginas(self):
        return campo(self.meta, "total_pages", "totalPages")

    @property
    def proxima(self):
        """next_page da API; sem a chave, deduz de currentPage/totalPages."""
        if "next_page" in self.meta:
            return self.meta["next_page"]
        atual, total = self.pagina_atual, self.total_paginas
        if atual and total and atual < total:
            return atual + 1
        return None

    @property
    def anterior(self):
        if "prev_page" in self.meta:
            return self.meta["prev_page"]
        atual = self.pagina_atual
        return atual - 1 if atual and atual > 1 else None

    @property
    def tem_proxima(self):
        return bool(self.proxima)

    @property
    def tem_anterior(self):
        return bool(self.anterior)

    def __iter__(self):
        return iter(self.itens)

    def __len__(self):
        return len(self.itens)


def desembrulhar(corpo, chave=None):
    """Tira o envelope das respostas de item: {"student": {...}} -> {...}."""
    if isinstance(corpo, dict):
        if chave and isinstance(corpo.get(chave), dict):
            return corpo[chave]
        if len(corpo) == 1:
            valor = next(iter(corpo.values()))
            if isinstance(valor, dict):
                return valor
    return corpo


class Recurso:
    """Operações CRUD de um recurso REST."""

    def __init__(self, caminho, envelope=None, chave_lista=None):
        self.caminho = caminho
        # Alguns endpoints esperam o payload embrulhado: {"student": {...}}
        self.envelope = envelope
        self.chave_lista = chave_lista

    def _payload(self, dados):
        return {self.envelope: dados} if self.envelope else dados

    def listar(self, params=None):
        return api_request(self.caminho, params=params)

    def paginar(self, params=None):
        return Pagina.de_resposta(self.listar(params), self.chave_lista)

    def obter(self, id):
        return desembrulhar(api_request(f"{self.caminho}/{id}"), self.envelope)

    def criar(self, dados):
        return api_request(self.caminho, method="POST", json=self._payload(dados))

    def atualizar(self, id, dados):
        return api_request(f"{self.caminho}/{id}", method="PUT", json=self._payload(dados))

    def excluir(self, id):
        return api_request(f"{self.caminho}/{id}", method="DELETE")


class Responsaveis(Recurso):
    def alunos(self, id):
        return Pagina.de_resposta(api_request(f"{self.caminho}/{id}/students"), "students").itens


class AlunosAdmin(Recurso):
    def exportar(self, params=None):
        return api_request(f"{self.caminho}/export", params=params, headers={"Accept": "application/json"})


class Turmas(Recurso):
    def alunos(self, id):
        return Pagina.de_resposta(api_request(f"{self.caminho}/{id}/students"), "students").itens


class Etapas(Recurso):
    def ativar(self, id):
        return api_request(f"{self.caminho}/{id}/set_active", method="PUT")


class Diarios(Recurso):
    def alunos(self, id):
        return Pagina.de_resposta(api_request(f"{self.caminho}/{id}/students"), "students").itens

    def estatisticas(self, id):
        return api_request(f"{self.caminho}/{id}/statistics")

    def ocorrencias(self, id, data=None):
        params = {"date": data} if data else None
        return Pagina.de_resposta(api_request(f"{self.caminho}/{id}/occurrences", params=params)).itens

    # Aulas do diário
    def aulas(self, id, params=None):
        return Pagina.de_resposta(api_request(f"{self.caminho}/{id}/lessons", params=params), "lessons").itens

    def aula(self, id, aula_id):
        return desembrulhar(api_request(f"{self.caminho}/{id}/lessons/{aula_id}"), "lesson")

    def criar_aula(self, id, dados):
        return api_request(f"{self.caminho}/{id}/lessons", method="POST", json=dados)

    def atualizar_aula(self, id, aula_id, dados):
        return api_request(f"{self.caminho}/{id}/lessons/{aula_id}", method="PUT", json=dados)

    def excluir_aula(self, id, aula_id):
        return api_request(f"{self.caminho}/{id}/lessons/{aula_id}", method="DELETE")

    def concluir_aula(self, id, aula_id):
        return api_request(f"{self.caminho}/{id}/lessons/{aula_id}/complete_lesson", method="PUT")

    def cancelar_aula(self, id, aula_id):
        return api_request(f"{self.caminho}/{id}/lessons/{aula_id}/cancel_lesson", method="PUT")

    # Presenças da aula
    def presencas_aula(self, id, aula_id):
        return Pagina.de_resposta(
            api_request(f"{self.caminho}/{id}/lessons/{aula_id}/attendances"), "attendances"
        ).itens

    def atualizar_presencas(self, id, aula_id, presencas):
        return api_request(
            f"{self.caminho}/{id}/lessons/{aula_id}/update_attendances",
            method="PUT",
            json={"attendances": presencas},
        )


class Presencas(Recurso):
    def atualizar_em_lote(self, presencas):
        return api_request(f"{self.caminho}/bulk_update", method="PUT", json={"attendances": presencas})


class Mensalidades(Recurso):
    def pagar(self, id, dados):
        return api_request(f"{self.caminho}/{id}/pay", method="PUT", json=dados)

    def gerar_em_lote(self, mes, ano, valor):
        return api_request(
            f"{self.caminho}/bulk_generate", method="POST",
            json={"month": mes, "year": ano, "amount": valor},
        )

    def estatisticas(self, params=None):
        return api_request(f"{self.caminho}/statistics", params=params)

    def relatorio_atrasos(self):
        return api_request(f"{self.caminho}/overdue_report")


class Salarios(Recurso):
    def pagar(self, id):
        return api_request(f"{self.caminho}/{id}/pay", method="PUT")

    def gerar_em_lote(self, mes, ano):
        return api_request(f"{self.caminho}/bulk_generate", method="POST", json={"month": mes, "year": ano})

    def estatisticas(self, params=None):
        return api_request(f"{self.caminho}/statistics", params=params)


class Transacoes(Recurso):
    def pagar(self, id, dados):
        return api_request(f"{self.caminho}/{id}/pay", method="PUT", json=dados)

    def gerar_fatura_cora(self, id):
        return api_request(f"{self.caminho}/{id}/generate_cora_invoice", method="POST")

    def fluxo_caixa(self, inicio=None, fim=None):
        return api_request(f"{self.caminho}/cash_flow", params={"start_date": inicio, "end_date": fim})


class BoletosCora(Recurso):
    def gerar_pix(self, id):
        return api_request(f"{self.caminho}/{id}/generate_pix_voucher", method="POST")

    def gerar_boleto(self, id):
        return api_request(f"{self.caminho}/{id}/generate_boleto", method="POST")

    def cancelar(self, id):
        return api_request(f"{self.caminho}/{id}/cancel", method="PATCH")


class Relatorios:
    def notas(self, turma_id, etapa_id):
        return api_request("/reports/grades_report",
                           params={"class_id": turma_id, "academic_term_id": etapa_id})

    def aluno(self, aluno_id, etapa_id):
        return api_request("/reports/student_report",
                           params={"student_id": aluno_id, "academic_term_id": etapa_id})


class Financas:
    def painel(self, mes=None):
        return api_request("/finances/dashboard", params={"month": mes})


class Autenticacao:
    def login(self, email, senha):
        return api_request("/auth/login", method="POST", json={"email": email, "password": senha})

    def logout(self):
        return api_request("/auth/logout", method="POST")

    def validar(self):
        return api_request("/auth/validate")


class Painel:
    def visao_geral(self):
        return api_request("/dashboard")

    def admin(self):
        return api_request("/admin/dashboard")


alunos = Recurso("/students", envelope="student", chave_lista="students")
alunos_admin = AlunosAdmin("/admin/students", envelope="student", chave_lista="students")
responsaveis = Responsaveis("/admin/guardians", envelope="guardian", chave_lista="guardians")
professores = Recurso("/teachers", envelope="teacher", chave_lista="teachers")
turmas = Turmas("/classes", envelope="school_class", chave_lista="classes")
disciplinas = Recurso("/subjects")
etapas = Etapas("/academic_terms")
niveis_ensino = Recurso("/education_levels")
series = Recurso("/grade_levels", envelope="grade_level")
diarios = Diarios("/diaries", chave_lista="diaries")
presencas = Presencas("/attendances")
notas = Recurso("/grades", envelope="grade", chave_lista="grades")
ocorrencias = Recurso("/occurrences", chave_lista="occurrences")
mensalidades = Mensalidades("/tuitions", envelope="tuition", chave_lista="tuitions")
salarios = Salarios("/salaries", envelope="salary", chave_lista="salaries")
transacoes = Transacoes("/financial_transactions", envelope="financial_transaction", chave_lista="transactions")
boletos_cora = BoletosCora("/cora_invoices", chave_lista="invoices")
relatorios = Relatorios()
financas = Financas()
autenticacao = Autenticacao()
painel = Painel()
