#!/usr/bin/env python3
"""
create_admin.py

Purpose:
  - Create an approved admin account. Registration through the API only ever
    creates pending regular users, so the first admin has to come from here.
  - Creates the identity with the configured provider, then writes the
    account document with userType=admin and status=approved.

Usage:
  MONGO_URI="..." FIREBASE_API_KEY="..." python create_admin.py \
      --email admin@example.com --password secret123 --first-name Ana --last-name Reyes
  IDENTITY_BACKEND=local python create_admin.py --email admin@example.com --password secret123
"""

import argparse
import logging
import sys

from config import get_config
from database import USERS, connect, ensure_indexes
from errors import ProviderAuthError
from models import STATUS_APPROVED, USER_TYPE_ADMIN, Account
from services.identity import build_identity_provider
from services.stores import AccountStore

log = logging.getLogger("create_admin")


def admin_exists(accounts):
    return accounts.collection.find_one({"userType": USER_TYPE_ADMIN}) is not None


def create_admin(identity, accounts, email, password, first_name="", last_name="", username=""):
    email = email.strip().lower()
    created = identity.create_identity(email, password)
    account = Account(
        id=created.uid,
        email=email,
        firstName=first_name,
        lastName=last_name,
        username=username or email.split("@", 1)[0],
        userType=USER_TYPE_ADMIN,
        status=STATUS_APPROVED,
    )
    accounts.create(account)
    return account


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create an approved admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--first-name", default="")
    parser.add_argument("--last-name", default="")
    parser.add_argument("--username", default="")
    parser.add_argument("--env", default=None, help="config name (development/production/testing)")
    args = parser.parse_args(argv)

    cfg = get_config(args.env)
    logging.basicConfig(level=cfg.LOG_LEVEL, format="%(asctime)s %(levelname)s %(message)s")

    db = connect(cfg.MONGO_URI, cfg.DB_NAME)
    ensure_indexes(db)
    accounts = AccountStore(db[USERS])
    identity = build_identity_provider(
        {k: getattr(cfg, k) for k in dir(cfg) if k.isupper()}, db
    )

    if admin_exists(accounts):
        log.info("An admin account already exists; creating another one")

    try:
        account = create_admin(
            identity, accounts, args.email, args.password,
            first_name=args.first_name, last_name=args.last_name, username=args.username,
        )
    except ProviderAuthError as e:
        log.error("Could not create identity: %s (%s)", e.message, e.code)
        return 1

    log.info("Admin %s created with id %s", account.email, account.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
