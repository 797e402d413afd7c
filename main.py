# -*- coding: utf-8 -*-
"""
Ponto de entrada do front-end web da escola.
"""

import argparse
import os

from escola_web import create_app


def main(argv=None):
    parser = argparse.ArgumentParser(description="Front-end web da escola")
    parser.add_argument("--host", default=os.environ.get("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", 5700)))
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)

    app = create_app()
    print("Iniciando aplicação Flask...")
    app.run(debug=args.debug, host=args.host, port=args.port)


if __name__ == '__main__':
    main()
