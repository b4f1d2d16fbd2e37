"""
Main entry point for the SCUNET authentication client.

Command-line front end for login, logout, status checks and saved accounts.
"""

import argparse
import getpass
import os
import sys
from typing import Dict, List, Optional, Tuple

from .core import AuthContext, AuthError, Config, setup_logger
from .models import Account, LOGIN, LOGOUT, ServiceType
from .portal import create_portal_client
from .services import AccountRepository
from .transport import HTTPTransport
from . import facade


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="scunet-auth",
        description="SCUNET captive portal authentication client"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Console log level (DEBUG, INFO, WARNING, ERROR)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall deadline for the operation in seconds"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, text in ((LOGIN, "Log in to the portal"), (LOGOUT, "Log out from the portal")):
        sub = subparsers.add_parser(name, help=text)
        sub.add_argument("--username", "-u", help="Portal username (or SCUNET_USERNAME)")
        sub.add_argument("--password", "-p", help="Portal password (or SCUNET_PASSWORD)")
        sub.add_argument("--service", "-s", help="Egress service, e.g. EDUNET, CHINAMOBILE (or SCUNET_SERVICE)")
        sub.add_argument("--extra", default=None, help="Extra parameters as a JSON object")
        sub.add_argument("--account", "-a", help="Use a saved account (name or id)")

    subparsers.add_parser("status", help="Check whether the network is authenticated")

    accounts = subparsers.add_parser("accounts", help="Manage saved accounts")
    account_commands = accounts.add_subparsers(dest="accounts_command", required=True)

    account_commands.add_parser("list", help="List saved accounts")

    add = account_commands.add_parser("add", help="Save an account")
    add.add_argument("name", help="Account display name")
    add.add_argument("username", help="Portal username")
    add.add_argument("--password", "-p", help="Portal password (prompted if omitted)")
    add.add_argument("--service", "-s", default=ServiceType.CAMPUS_NET.backend_value, help="Egress service")
    add.add_argument("--select", action="store_true", help="Select the account after saving it")

    remove = account_commands.add_parser("remove", help="Delete a saved account")
    remove.add_argument("account", help="Account name or id")

    select = account_commands.add_parser("select", help="Select the default account")
    select.add_argument("account", help="Account name or id")

    return parser


def resolve_credentials(
    args: argparse.Namespace,
    repository: AccountRepository
) -> Tuple[str, str, Dict[str, str]]:
    """
    Resolve username, password and extra parameters for login/logout.

    Flags win over environment variables, which win over the saved account
    (the one named by --account, else the selected one).
    """
    extra: Dict[str, str] = {}
    if args.extra is not None:
        extra.update(facade.parse_extra(args.extra))

    username = args.username or os.getenv("SCUNET_USERNAME")
    password = args.password or os.getenv("SCUNET_PASSWORD")
    service = args.service or os.getenv("SCUNET_SERVICE")

    if args.account or not username:
        account = repository.get_account(args.account) if args.account else repository.get_selected_account()
        if args.account and account is None:
            raise ValueError(f"Account '{args.account}' not found")
        if account is not None:
            username = username if args.username else account.username
            password = password if args.password else account.password
            service = service or account.service_type

    if service:
        service_type = ServiceType.lookup(service)
        if service_type is None:
            raise ValueError(
                f"Unknown service '{service}'. Available: "
                f"{', '.join(member.backend_value for member in ServiceType)}"
            )
        extra.setdefault("service", service_type.backend_value)

    return username or "", password or "", extra


def run_auth(args: argparse.Namespace, config: Config, logger) -> int:
    repository = AccountRepository(config.accounts_file, logger)
    username, password, extra = resolve_credentials(args, repository)

    ctx = AuthContext(timeout=args.timeout)
    outcome = facade.run(args.command, username, password, extra, config=config, ctx=ctx, log=logger)
    print(outcome.message)
    for key, value in outcome.data.items():
        logger.info(f"Portal returned {key}={value}")
    return 0 if outcome.success else 1


def run_status(args: argparse.Namespace, config: Config, logger) -> int:
    ctx = AuthContext(timeout=args.timeout)
    with HTTPTransport(
        timeout=config.http_timeout,
        verify_ssl=config.verify_ssl,
        user_agent=config.user_agent,
        max_redirects=config.max_redirects,
        logger=logger,
    ) as transport:
        client = create_portal_client(config, transport, logger)
        try:
            probe = client.probe(ctx)
        except AuthError as e:
            print(f"Status check failed: {e}")
            return 1

    if probe.authenticated:
        print("Online: network is authenticated")
        return 0
    print(f"Offline: captive portal at {probe.portal_url or 'unknown location'}")
    return 1


def run_accounts(args: argparse.Namespace, config: Config, logger) -> int:
    repository = AccountRepository(config.accounts_file, logger)
    command = args.accounts_command

    if command == "list":
        accounts = repository.get_accounts()
        selected = repository.get_selected_account()
        if not accounts:
            print("No saved accounts")
        for account in accounts:
            marker = "*" if selected and selected.id == account.id else " "
            service = ServiceType.from_backend_value(account.service_type)
            label = service.display_name if service else account.service_type
            print(f"{marker} {account.name}\t{account.username}\t{label}\t{account.id}")
        return 0

    if command == "add":
        service = ServiceType.lookup(args.service)
        if service is None:
            print(f"Unknown service '{args.service}'")
            return 1
        password = args.password if args.password is not None else getpass.getpass("Password: ")
        account = repository.add_account(
            Account(name=args.name, username=args.username, password=password, service_type=service.backend_value)
        )
        if args.select:
            repository.select_account(account.id)
        print(f"Saved account '{account.name}' ({account.id})")
        return 0

    account = repository.get_account(args.account)
    if account is None:
        print(f"Account '{args.account}' not found")
        return 1

    if command == "remove":
        repository.delete_account(account.id)
        print(f"Removed account '{account.name}'")
    else:
        repository.select_account(account.id)
        print(f"Selected account '{account.name}'")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = Config(args.config)
        logger = setup_logger(log_level=args.log_level)
        logger.debug(f"Configuration: {config}")

        if args.command in (LOGIN, LOGOUT):
            return run_auth(args, config, logger)
        if args.command == "status":
            return run_status(args, config, logger)
        return run_accounts(args, config, logger)
    except Exception as e:
        print(f"Application failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
