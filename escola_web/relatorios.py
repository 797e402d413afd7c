# -*- coding: utf-8 -*-
"""
Geração dos relatórios em PDF (boletim, presenças e resumo mensal).

O layout é desenhado diretamente no canvas do reportlab em coordenadas fixas.
As posições verticais são dadas em milímetros a partir do topo da página
(``y``) e convertidas para o sistema do PDF em ``_y()``. O documento fica em
memória até ``gerar()``; se o desenho falhar nada é gravado.
"""

from datetime import date
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from escola_web import agregacao
from escola_web.utils import campo, format_date_br

# Posição (mm do topo) a partir da qual começa uma nova página
LIMITE_PAGINA = 270
INICIO_CONTEUDO = 55

CORES_FREQUENCIA = {
    "green": colors.Color(0, 128 / 255, 0),
    "orange": colors.Color(1, 165 / 255, 0),
    "red": colors.Color(1, 0, 0),
}

CORES_RESUMO = (
    colors.Color(52 / 255, 152 / 255, 219 / 255),
    colors.Color(155 / 255, 89 / 255, 182 / 255),
    colors.Color(46 / 255, 204 / 255, 113 / 255),
    colors.Color(231 / 255, 76 / 255, 60 / 255),
)

OBSERVACOES_RESUMO = (
    "• Relatório gerado automaticamente pelo sistema",
    "• Dados compilados de todas as turmas ativas",
    "• Frequência calculada com base nas presenças registradas",
    "• Para relatórios detalhados, consulte os relatórios específicos por turma",
)


def nome_arquivo(prefixo, hoje=None, complemento=None):
    """Ex.: nome_arquivo('boletim', complemento='5º Ano A') -> boletim_5º_Ano_A_2025-03-01.pdf"""
    hoje = hoje or date.today()
    partes = [prefixo]
    if complemento:
        partes.append("_".join(str(complemento).split()))
    partes.append(hoje.isoformat())
    return "_".join(partes) + ".pdf"


class GeradorPDF:
    """Desenha um relatório por instância; chame ``gerar()`` para obter os bytes."""

    def __init__(self, nome_escola="ESCOLA INFANTIL", hoje=None):
        self.nome_escola = nome_escola
        self.hoje = hoje or date.today()
        self.buffer = BytesIO()
        self.canvas = canvas.Canvas(self.buffer, pagesize=A4)
        self.largura, self.altura = A4
        self.paginas = 1
        self.titulo = ""

    # --- primitivas ---

    def _y(self, y_mm):
        return self.altura - y_mm * mm

    def _fonte(self, estilo="normal", tamanho=10):
        nome = {"normal": "Helvetica", "bold": "Helvetica-Bold", "italic": "Helvetica-Oblique"}[estilo]
        self.canvas.setFont(nome, tamanho)

    def _texto(self, texto, x_mm, y_mm, alinhamento="left"):
        texto = "" if texto is None else str(texto)
        x, y = x_mm * mm, self._y(y_mm)
        if alinhamento == "center":
            self.canvas.drawCentredString(x, y, texto)
        elif alinhamento == "right":
            self.canvas.drawRightString(x, y, texto)
        else:
            self.canvas.drawString(x, y, texto)

    def _linha(self, x1_mm, y_mm, x2_mm):
        self.canvas.setStrokeColor(colors.black)
        self.canvas.line(x1_mm * mm, self._y(y_mm), x2_mm * mm, self._y(y_mm))

    def _cabecalho(self):
        self.canvas.setFillColor(colors.black)
        self._fonte("bold", 20)
        self._texto(self.nome_escola, 105, 20, "center")
        self._fonte("bold", 16)
        self._texto(self.titulo, 105, 30, "center")
        self._fonte("normal", 10)
        self._texto(f"Gerado em: {self.hoje.strftime('%d/%m/%Y')}", 105, 40, "center")
        self._linha(20, 45, 190)

    def _rodape(self):
        self.canvas.setFillColor(colors.black)
        self._fonte("italic", 8)
        self._texto("Sistema de Gestão Escolar", 105, 297 - 10, "center")

    def _nova_pagina(self):
        self._rodape()
        self.canvas.showPage()
        self.paginas += 1
        self._cabecalho()
        return INICIO_CONTEUDO

    def _quebra(self, y, fonte=("normal", 10)):
        """Abre nova página (com cabeçalho) quando y passa do limite."""
        if y > LIMITE_PAGINA:
            y = self._nova_pagina()
            self._fonte(*fonte)
        return y

    def _rotulo_valor(self, rotulo, valor, y, x_valor):
        self._fonte("bold", 12)
        self._texto(rotulo, 20, y)
        self._fonte("normal", 12)
        self._texto(valor, x_valor, y)

    # --- relatórios ---

    def boletim(self, etapa, notas, turma=None):
        """
        Boletim de notas. ``notas`` segue o formato da API:
        ``{"student": {...}, "diary": {"subject": {...}}, "value", "gradeType"}``.
        """
        nome_turma = (turma or {}).get("name")
        self.titulo = f"BOLETIM DE NOTAS - {nome_turma}" if nome_turma else "BOLETIM DE NOTAS GERAL"
        self._cabecalho()

        y = INICIO_CONTEUDO
        etapa = etapa or {}
        self._rotulo_valor("PERÍODO LETIVO:", f"{etapa.get('name', '')} - {etapa.get('year', '')}", y, 70)
        if nome_turma:
            y += 10
            self._rotulo_valor("TURMA:", nome_turma, y, 50)
        y += 20

        self._fonte("bold", 12)
        for rotulo, x in (("ALUNO", 20), ("MATRÍCULA", 80), ("DISCIPLINA", 120), ("NOTA", 160), ("TIPO", 180)):
            self._texto(rotulo, x, y)
        self._linha(20, y + 2, 190)
        y += 10

        por_aluno = {}
        for nota in notas or []:
            aluno = nota.get("student") or {}
            por_aluno.setdefault(aluno.get("id"), {"student": aluno, "grades": []})["grades"].append(nota)

        self._fonte("normal", 9)
        for registro in por_aluno.values():
            aluno = registro["student"]
            primeira = True
            for nota in registro["grades"]:
                y = self._quebra(y, ("normal", 9))
                if primeira:
                    self._texto(aluno.get("name", ""), 20, y)
                    self._texto(campo(aluno, "registrationNumber", "registration_number", padrao=""), 80, y)
                    primeira = False
                disciplina = ((nota.get("diary") or {}).get("subject") or {}).get("name") or "N/A"
                self._texto(disciplina, 120, y)
                self._texto(_formatar_nota(nota.get("value")), 160, y)
                self._texto(campo(nota, "gradeType", "grade_type", padrao=""), 180, y)
                y += 7
            self._linha(20, y, 190)
            y += 5
        return self

    def frequencia(self, periodo, alunos, turma=None):
        """
        Relatório de presenças. Cada item de ``alunos`` tem name, totalClasses,
        present, absent, late e percentage (ver agregacao.relatorio_frequencia).
        """
        nome_turma = (turma or {}).get("name")
        self.titulo = f"RELATÓRIO DE PRESENÇAS - {nome_turma}" if nome_turma else "RELATÓRIO DE PRESENÇAS GERAL"
        self._cabecalho()

        y = INICIO_CONTEUDO
        inicio = format_date_br((periodo or {}).get("start"))
        fim = format_date_br((periodo or {}).get("end"))
        self._rotulo_valor("PERÍODO:", f"{inicio} a {fim}", y, 60)
        if nome_turma:
            y += 10
            self._rotulo_valor("TURMA:", nome_turma, y, 50)
        y += 20

        self._fonte("bold", 12)
        for rotulo, x in (("ALUNO", 20), ("TOTAL", 80), ("PRESENÇAS", 110),
                          ("FALTAS", 140), ("ATRASOS", 165), ("FREQ. %", 185)):
            self._texto(rotulo, x, y)
        self._linha(20, y + 2, 200)
        y += 10

        self._fonte("normal", 10)
        for aluno in alunos or []:
            y = self._quebra(y)
            self._texto(aluno.get("name", ""), 20, y)
            self._texto(aluno.get("totalClasses", 0), 85, y)
            self._texto(aluno.get("present", 0), 120, y)
            self._texto(aluno.get("absent", 0), 150, y)
            self._texto(aluno.get("late") or 0, 175, y)

            pct = aluno.get("percentage", 0)
            self.canvas.setFillColor(CORES_FREQUENCIA[agregacao.cor_frequencia(pct)])
            self._texto(f"{pct}%", 190, y)
            self.canvas.setFillColor(colors.black)
            y += 8

        resumo = agregacao.resumo_relatorio_frequencia(alunos or [])
        y = self._quebra(y + 10)
        self._linha(20, y, 200)
        y += 10
        y = self._quebra(y)
        self._fonte("bold", 10)
        self._texto("RESUMO GERAL:", 20, y)
        y += 10
        self._fonte("normal", 10)
        for linha in (f"Total de alunos: {resumo['total_students']}",
                      f"Total de presenças: {resumo['total_present']}",
                      f"Total de faltas: {resumo['total_absent']}",
                      f"Frequência média da turma: {resumo['average_attendance']}%"):
            y = self._quebra(y)
            self._texto(linha, 20, y)
            y += 7
        return self

    def resumo_mensal(self, titulo, periodo, resumo):
        self.titulo = titulo
        self._cabecalho()

        y = INICIO_CONTEUDO
        inicio = format_date_br((periodo or {}).get("start"))
        fim = format_date_br((periodo or {}).get("end"))
        self._rotulo_valor("PERÍODO:", f"{inicio} a {fim}", y, 60)
        y += 30

        self._fonte("bold", 14)
        self._texto("ESTATÍSTICAS GERAIS", 20, y)
        y += 15

        resumo = resumo or {}
        estatisticas = (
            ("Total de Alunos", resumo.get("totalStudents", 0)),
            ("Total de Turmas", resumo.get("totalClasses", 0)),
            ("Frequência Média", f"{resumo.get('averageAttendance', 0)}%"),
            ("Notas Lançadas", resumo.get("totalGrades", 0)),
        )
        x = 20
        for (rotulo, valor), cor in zip(estatisticas, CORES_RESUMO):
            self.canvas.setFillColor(cor)
            # rect recebe o canto inferior esquerdo
            self.canvas.rect(x * mm, self._y(y + 25), 40 * mm, 25 * mm, fill=1, stroke=0)
            self.canvas.setFillColor(colors.white)
            self._fonte("bold", 11)
            self._texto(valor, x + 20, y + 12, "center")
            self.canvas.setFillColor(colors.black)
            self._fonte("normal", 9)
            self._texto(rotulo, x + 20, y + 35, "center")
            x += 45
        y += 60

        self._fonte("bold", 12)
        self._texto("OBSERVAÇÕES", 20, y)
        y += 10
        self._fonte("normal", 10)
        for obs in OBSERVACOES_RESUMO:
            self._texto(obs, 20, y)
            y += 8
        return self

    def gerar(self) -> bytes:
        self._rodape()
        self.canvas.showPage()
        self.canvas.save()
        dados = self.buffer.getvalue()
        self.buffer.close()
        return dados


def _formatar_nota(valor):
    numero = agregacao.converter_nota(valor)
    return f"{numero:.1f}".rstrip("0").rstrip(".") if numero != int(numero) else str(int(numero))


def pdf_boletim(etapa, notas, turma=None, nome_escola="ESCOLA INFANTIL", hoje=None):
    return GeradorPDF(nome_escola, hoje).boletim(etapa, notas, turma).gerar()


def pdf_frequencia(periodo, alunos, turma=None, nome_escola="ESCOLA INFANTIL", hoje=None):
    return GeradorPDF(nome_escola, hoje).frequencia(periodo, alunos, turma).gerar()


def pdf_resumo_mensal(titulo, periodo, resumo, nome_escola="ESCOLA INFANTIL", hoje=None):
    return GeradorPDF(nome_escola, hoje).resumo_mensal(titulo, periodo, resumo).gerar()
