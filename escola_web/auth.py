# -*- coding: utf-8 -*-
"""Decorators de autenticação e de papel do usuário (admin, teacher, guardian)."""

from functools import wraps

from flask import session, redirect, url_for, request, flash

# Página inicial de cada papel
HOME_POR_PAPEL = {
    'admin': 'admin.painel',
    'teacher': 'professor.painel',
    'guardian': 'responsavel.painel',
}


def usuario_atual():
    return session.get('user_info') or {}


def home_do_usuario(usuario=None):
    usuario = usuario if usuario is not None else usuario_atual()
    return url_for(HOME_POR_PAPEL.get(usuario.get('role'), 'escola.painel'))


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'access_token' not in session:
            return redirect(url_for('login', next=request.full_path))
        return f(*args, **kwargs)
    return decorated_function


def papel_requerido(*papeis):
    """Restringe a rota aos papéis informados; os demais voltam para a sua home."""
    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if usuario_atual().get('role') not in papeis:
                flash("Acesso restrito.", "error")
                return redirect(home_do_usuario())
            return f(*args, **kwargs)
        return decorated_function
    return decorator
