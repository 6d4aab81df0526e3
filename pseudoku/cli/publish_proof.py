#!/usr/bin/env python3
"""
CLI tool to publish a proof export as a GitHub gist.
The token comes from --token or the GITHUB_TOKEN environment variable.
"""

import argparse
import os

from pseudoku.auth.gist import GistClient
from pseudoku.config import GITHUB_API_URL
from pseudoku.core import decode_export
from pseudoku.core.display import is_valid_github_token, share_message
from pseudoku.cli.common import fail, log, read_text, succeed


def publish_proof_cli(argv=None):
    parser = argparse.ArgumentParser(description='Publish a Pseudoku proof to a GitHub gist')
    parser.add_argument('--proof', required=True, help='Proof export: JSON, file path or - for stdin')
    parser.add_argument('--token', default=os.environ.get('GITHUB_TOKEN'), help='GitHub token with gist scope')
    parser.add_argument('--description', help='Gist description')
    parser.add_argument('--private', action='store_true', help='Create a secret gist')
    parser.add_argument('--api-url', default=os.environ.get('PSEUDOKU_GITHUB_API_URL', GITHUB_API_URL))
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output')

    args = parser.parse_args(argv)

    try:
        export = decode_export(read_text(args.proof))
        if args.token and not is_valid_github_token(args.token):
            log(args.verbose, "Token does not look like a personal access token; trying anyway")

        log(args.verbose, "Uploading to GitHub Gist...")
        client = GistClient(args.token, api_url=args.api_url)
        gist = client.create_gist(export, args.description, public=not args.private)
        log(args.verbose, "Gist created successfully!")

        succeed({
            'success': True,
            'url': gist.url,
            'id': gist.id,
            'share': share_message(export.time_in_ms, gist.url),
        })

    except Exception as e:
        fail(e)


if __name__ == '__main__':
    publish_proof_cli()
