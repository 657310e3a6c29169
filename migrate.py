#!/usr/bin/env python3
"""
Atalhos para as migrações Alembic do Comandix.

    python migrate.py create "mensagem"   # nova revisão (autogenerate)
    python migrate.py upgrade [alvo]      # aplica até o alvo (padrão: head)
    python migrate.py downgrade [alvo]    # desfaz até o alvo (padrão: -1)
    python migrate.py history             # lista revisões
    python migrate.py current             # revisão aplicada no banco
"""
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

root_dir = Path(__file__).parent
sys.path.insert(0, str(root_dir))

from app.core.config import settings  # noqa: E402


def get_alembic_config() -> Config:
    alembic_cfg = Config(str(root_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(root_dir / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def create_migration(message: str):
    command.revision(get_alembic_config(), autogenerate=True, message=message)
    print(f"Migração criada: {message}")


def run_migrations(target: str = "head"):
    command.upgrade(get_alembic_config(), target)
    print(f"Banco atualizado até {target}")


def rollback_migration(target: str = "-1"):
    command.downgrade(get_alembic_config(), target)
    print(f"Banco revertido para {target}")


def show_history():
    command.history(get_alembic_config())


def show_current():
    command.current(get_alembic_config())


def main(argv):
    if len(argv) < 2:
        print(__doc__)
        return 1

    action, args = argv[1], argv[2:]

    if action == "create":
        if not args:
            print("Erro: informe a mensagem da migração")
            return 1
        create_migration(args[0])
    elif action == "upgrade":
        run_migrations(*args[:1])
    elif action == "downgrade":
        rollback_migration(*args[:1])
    elif action == "history":
        show_history()
    elif action == "current":
        show_current()
    else:
        print(f"Ação desconhecida: {action}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
