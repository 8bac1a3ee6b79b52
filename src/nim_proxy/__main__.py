"""
Point d'entrée pour `python -m nim_proxy`.
"""
import argparse
import logging
import os

import uvicorn

from .config.loader import load_settings
from .main import create_app


def main():
    """Fonction principale."""
    parser = argparse.ArgumentParser(description="NIM Proxy Gateway")
    parser.add_argument("--host", default="0.0.0.0", help="Host (défaut: 0.0.0.0)")
    parser.add_argument(
        "--port", type=int, default=int(os.environ.get("PORT", 3000)),
        help="Port (défaut: $PORT ou 3000)"
    )
    parser.add_argument("--config", default=None, help="Chemin du fichier config.toml")
    parser.add_argument("--log-level", default="info", help="Niveau de log (défaut: info)")

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s"
    )

    app = create_app(load_settings(args.config))

    print(f"🚀 Proxy en écoute sur {args.host}:{args.port}")

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower()
    )


if __name__ == "__main__":
    main()
