#!/usr/bin/env python3
"""
Admin password hash tool for the parish site console.

    python scripts/generate_password_hash.py           - generate ADMIN_PASSWORD_HASH
    python scripts/generate_password_hash.py --check   - test a password against the configured hash
"""
import getpass
import sys

from parish.config import settings
from parish.utils.auth import hash_password, verify_password


def prompt_new_password() -> str:
    """Ask twice for the new password; returns an empty string on mismatch."""
    password = getpass.getpass("Senha do painel: ")
    if not password:
        print("\n❌ Erro: a senha não pode ser vazia")
        return ""

    if password != getpass.getpass("Confirme a senha: "):
        print("\n❌ Erro: as senhas não conferem")
        return ""
    return password


def generate() -> int:
    print("=" * 60)
    print("Gerador de hash da senha do painel administrativo")
    print("=" * 60)
    print("Copie o resultado para o .env como ADMIN_PASSWORD_HASH\n")

    password = prompt_new_password()
    if not password:
        return 1

    print("\n⏳ Gerando hash...")
    print(f"\n✅ ADMIN_PASSWORD_HASH={hash_password(password)}\n")
    print("⚠️  Nunca versione este valor!")
    return 0


def check() -> int:
    if not settings.ADMIN_PASSWORD_HASH:
        print("❌ ADMIN_PASSWORD_HASH não está configurado")
        return 1

    print(f"Hash configurado: {settings.ADMIN_PASSWORD_HASH[:20]}...")
    password = getpass.getpass("Senha para testar: ")
    if verify_password(password, settings.ADMIN_PASSWORD_HASH):
        print("✅ A senha confere")
        return 0

    print("❌ A senha não confere. Gere um novo hash e atualize o .env.")
    return 1


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] == "--check":
        return check()
    return generate()


if __name__ == "__main__":
    sys.exit(main())
