"""
Commandes d'administration (click) : création d'un compte et purge des sessions.

Usage :
  autoshop create-user staff@dadjauto.shop --password 'Secret123' --role staff
  autoshop cleanup-sessions [--all]
"""

import click

from autoshop.database import SessionLocal, init_db
from autoshop.models.user import ROLES
from autoshop.services import password_reset_service, session_service, user_service


@click.group()
def cli() -> None:
    """Administration du backend DADJ Auto Shop."""


@cli.command("create-user")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True,
              help="Mot de passe du compte.")
@click.option("--role", default="user", type=click.Choice(list(ROLES)), show_default=True)
@click.option("--name", default=None, help="Nom affiché.")
def create_user(email: str, password: str, role: str, name: str) -> None:
    """Crée un utilisateur (les tables manquantes sont créées au besoin)."""
    init_db()
    db = SessionLocal()
    try:
        user = user_service.create_user(db, email=email, password=password, role=role, name=name)
    except ValueError as exc:
        raise click.ClickException(str(exc))
    finally:
        db.close()
    click.echo(f"Utilisateur créé : {user.email} ({user.role}), id {user.id}")


@cli.command("cleanup-sessions")
@click.option("--all", "purge_all", is_flag=True, help="Supprimer toutes les sessions, pas seulement les expirées.")
def cleanup_sessions(purge_all: bool) -> None:
    """Supprime les sessions expirées et les tokens de réinitialisation périmés."""
    db = SessionLocal()
    try:
        sessions = session_service.purge_expired_sessions(db, purge_all=purge_all)
        tokens = password_reset_service.purge_expired_tokens(db)
    finally:
        db.close()
    click.echo(f"{sessions} session(s) supprimée(s), {tokens} token(s) de réinitialisation supprimé(s)")


if __name__ == "__main__":
    cli()
