# -*- coding: utf-8 -*-
"""
Aplicação Flask: login, filtros de template e registro dos blueprints
(admin, escola, diários, relatórios, financeiro, professor e responsável).
"""

import logging

from flask import Flask, render_template, request, redirect, url_for, flash, session

from escola_web import api, agregacao
from escola_web.auth import login_required, home_do_usuario, usuario_atual
from escola_web.config import Config
from escola_web.utils import ErroAPI, format_datetime, format_date_br, format_moeda


def configurar_logging(app):
    logging.basicConfig(
        level=getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        filename=app.config.get('LOG_FILE'),
    )


def registrar_filtros(app):
    app.add_template_filter(format_datetime, 'format_datetime')
    app.add_template_filter(format_date_br, 'format_date_br')
    app.add_template_filter(format_moeda, 'moeda')
    app.add_template_filter(agregacao.cor_frequencia, 'cor_frequencia')
    app.add_template_filter(agregacao.cor_media, 'cor_media')
    app.add_template_filter(agregacao.cor_nota, 'cor_nota')
    app.add_template_filter(agregacao.cor_frequencia_responsavel, 'cor_frequencia_responsavel')


def registrar_blueprints(app):
    from escola_web.views.admin import bp as admin_bp
    from escola_web.views.escola import bp as escola_bp
    from escola_web.views.diarios import bp as diarios_bp
    from escola_web.views.relatorios import bp as relatorios_bp
    from escola_web.views.financeiro import bp as financeiro_bp
    from escola_web.views.professor import bp as professor_bp
    from escola_web.views.responsavel import bp as responsavel_bp

    for bp in (admin_bp, escola_bp, diarios_bp, relatorios_bp, financeiro_bp, professor_bp, responsavel_bp):
        app.register_blueprint(bp)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configurar_logging(app)
    registrar_filtros(app)
    registrar_blueprints(app)

    @app.context_processor
    def injetar_usuario():
        return {'usuario': usuario_atual(), 'nome_escola': app.config.get('NOME_ESCOLA')}

    @app.route("/login", methods=["GET", "POST"])
    def login():
        if request.method == "POST":
            email = (request.form.get("email") or "").strip()
            password = request.form.get("password") or ""
            if not email or not password:
                flash("Informe e-mail e senha.", "error")
                return render_template("login.html", email=email)

            try:
                data = api.autenticacao.login(email, password) or {}
            except ErroAPI as e:
                app.logger.warning(f"Falha de login para {email}: {e.mensagem}")
                flash(e.mensagem if e.status_code else "Não foi possível conectar ao servidor.", "error")
                return render_template("login.html", email=email)

            token = data.get('token') or data.get('access_token')
            if not token:
                app.logger.error(f"Login de {email} sem token na resposta da API")
                flash("Resposta de login inválida: token ausente.", "error")
                return render_template("login.html", email=email)

            session['access_token'] = token
            session['user_info'] = data.get('user') or {}
            flash(f"Bem-vindo, {session['user_info'].get('name', '')}!", "success")

            destino = request.args.get('next')
            if destino and destino.startswith('/') and not destino.startswith('//'):
                return redirect(destino)
            return redirect(home_do_usuario())

        return render_template("login.html")

    @app.route("/logout")
    def logout():
        if 'access_token' in session:
            try:
                api.autenticacao.logout()
            except ErroAPI as e:
                app.logger.warning(f"Erro ao encerrar sessão na API: {e.mensagem}")
        session.clear()
        flash("Logout realizado com sucesso.", "success")
        return redirect(url_for('login'))

    @app.route('/')
    @login_required
    def index():
        return redirect(home_do_usuario())

    return app
