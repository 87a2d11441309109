"""
nkjwt Command Line Interface.

Provides commands for generating seeds, reading public keys, issuing tokens
and inspecting them.
"""

import argparse
import json
import logging
import os
import sys

from nkjwt import config
from nkjwt.canonical import decode_token
from nkjwt.engine import generate_nkey, issue_token, public_key, read_nkey
from nkjwt.errors import NKeyJWTError
from nkjwt.hierarchy import IssuancePolicy


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def _read_extension(value):
    """--nats accepts inline JSON or @path to a JSON file."""
    if value and value.startswith("@"):
        with open(value[1:], "r", encoding="utf-8") as f:
            return f.read()
    return value


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate a new seed for an operator, account or user."""
    identity = generate_nkey(args.type)

    if args.json:
        print(json.dumps(identity.to_dict(), indent=2))
    else:
        print(f"Type:       {identity.tier}")
        print(f"Public Key: {identity.public_key}")
        print("\n--- SEED (Keep Secret) ---")
        print(identity.seed)
    return 0


def cmd_read(args: argparse.Namespace) -> int:
    """Describe an existing seed."""
    identity = read_nkey(args.seed)
    print(json.dumps(identity.to_dict(), indent=2))
    return 0


def cmd_pubkey(args: argparse.Namespace) -> int:
    """Print the public key of a seed."""
    print(public_key(args.seed))
    return 0


def cmd_issue(args: argparse.Namespace) -> int:
    """Issue a signed token."""
    issuer = args.iss or os.environ.get(config.ISSUER_SEED_ENV)
    if not issuer:
        print(f"Error: Missing issuer seed. Set {config.ISSUER_SEED_ENV} or use --iss", file=sys.stderr)
        return 1

    request = {
        "iss": issuer,
        "sub": args.sub,
        "name": args.name,
        "aud": args.aud,
        "exp": args.exp,
        "nbf": args.nbf,
        "iat": args.iat,
        "nats": _read_extension(args.nats),
    }
    policy = IssuancePolicy.permissive() if args.allow_top_user else None

    print(issue_token(request, policy=policy))
    return 0


def cmd_decode(args: argparse.Namespace) -> int:
    """Print the header and claims of a token (signature is not checked)."""
    parts = decode_token(args.token)
    print(json.dumps({"header": parts["header"], "claims": parts["claims"]}, indent=2))
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    config.print_config()
    return 0


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog='nkjwt',
        description='nkjwt CLI - NKey seeds and signed JWT issuance'
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # generate command
    p_gen = subparsers.add_parser('generate', help='Generate a new seed')
    p_gen.add_argument('type', help='Key type: operator|account|user (or top|org|user)')
    p_gen.add_argument('--json', action='store_true', help='Output as JSON, including raw keys')

    # read command
    p_read = subparsers.add_parser('read', help='Describe an existing seed')
    p_read.add_argument('seed', help='Seed to describe')

    # pubkey command
    p_pub = subparsers.add_parser('pubkey', help='Print the public key of a seed')
    p_pub.add_argument('seed', help='Seed')

    # issue command
    p_issue = subparsers.add_parser('issue', help='Issue a signed token')
    p_issue.add_argument('--iss', help=f'Issuer seed (default: ${config.ISSUER_SEED_ENV})')
    p_issue.add_argument('--sub', help='Subject seed or public key')
    p_issue.add_argument('--name', help='Name claim')
    p_issue.add_argument('--aud', help='Audience')
    p_issue.add_argument('--exp', help='Expiry (unix seconds or ISO-8601)')
    p_issue.add_argument('--nbf', help='Not before (unix seconds or ISO-8601)')
    p_issue.add_argument('--iat', help='Issued at (default: now)')
    p_issue.add_argument('--nats', help='Payload extension JSON, or @file')
    p_issue.add_argument(
        '--allow-top-user', action='store_true',
        help='Let operator keys issue user claims directly'
    )

    # decode command
    p_decode = subparsers.add_parser('decode', help='Show the contents of a token')
    p_decode.add_argument('token', help='The token to decode')

    subparsers.add_parser('config', help='Show effective configuration')

    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    commands = {
        'generate': cmd_generate,
        'read': cmd_read,
        'pubkey': cmd_pubkey,
        'issue': cmd_issue,
        'decode': cmd_decode,
        'config': cmd_config,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 0

    try:
        return handler(args)
    except NKeyJWTError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
