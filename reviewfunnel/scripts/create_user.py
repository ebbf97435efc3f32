"""
Provision an admin user in the configured store.

Creates the links / feedback / users tables first if they are missing, then
inserts the user with a bcrypt-hashed password.

Usage:
  python -m reviewfunnel.scripts.create_user --username admin
  python -m reviewfunnel.scripts.create_user --username admin --password 'S3cret!'
"""
from __future__ import annotations

import argparse
import getpass
import sys

from reviewfunnel.config import load_settings
from reviewfunnel.db import build_gateway
from reviewfunnel.errors import ReviewFunnelError
from reviewfunnel.logs import LogContext, configure_logging
from reviewfunnel.services import auth_svc, setup_svc


def main(argv=None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--username", required=True)
    ap.add_argument("--password", help="prompted for when omitted")
    args = ap.parse_args(argv)

    password = args.password or getpass.getpass("Password: ")

    settings = load_settings()
    configure_logging(settings.log_level)
    gw = build_gateway(settings)
    log = LogContext("CREATE_USER", user="cli")
    log.set_payload({"username": args.username, "backend": gw.name})
    try:
        setup_svc.ensure_schema(gw)
        if auth_svc.find_user_by_username(gw, args.username):
            log.write("ERROR", "user_exists")
            print({"message": "user_exists", "username": args.username})
            return 1
        if not auth_svc.create_user(gw, args.username, password):
            log.write("ERROR", "insert_rejected")
            print({"message": "failed", "username": args.username})
            return 1
    except ReviewFunnelError as e:
        log.write("ERROR", str(e))
        print({"message": "error", "error": str(e)})
        return 1
    finally:
        gw.close()

    log.write("OK")
    print({"message": "ok", "username": args.username})
    return 0


if __name__ == "__main__":
    sys.exit(main())
