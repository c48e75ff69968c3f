"""Mint a Gmail API refresh token for the MAIL_* settings.

Run from the backend directory:

    python -m scripts.get_gmail_refresh_token

Authorize with the Gmail account that should send seller emails, then copy
the printed lines into backend/.env.
"""
import sys
import webbrowser

from utils.errors import ExternalServiceError
from utils.gmail import DEFAULT_REDIRECT_URI, build_consent_url, exchange_authorization_code


def prompt(label: str) -> str:
    value = input(label).strip()
    if not value:
        print(f"{label.rstrip(': ')} is required", file=sys.stderr)
        sys.exit(1)
    return value


def main():
    print("Gmail refresh token generator")
    print("=============================\n")

    client_id = prompt("Enter your MAIL_CLIENT_ID: ")
    client_secret = prompt("Enter your MAIL_CLIENT_SECRET: ")

    consent_url = build_consent_url(client_id)
    print("\n1. Approve access in the browser window (gmail.send scope only)")
    print("2. You are redirected to the callback URL; copy its ?code= value\n")
    print(f"If no browser opens, visit:\n{consent_url}\n")
    webbrowser.open(consent_url)

    code = prompt("Paste the authorization code here: ")

    print("\nExchanging authorization code for refresh token...")
    try:
        refresh_token = exchange_authorization_code(
            client_id=client_id,
            client_secret=client_secret,
            code=code,
        )
    except ExternalServiceError as e:
        print(f"Error exchanging authorization code: {e.detail}", file=sys.stderr)
        sys.exit(1)

    print("\nAdd these to backend/.env:\n")
    print(f"MAIL_CLIENT_ID={client_id}")
    print(f"MAIL_CLIENT_SECRET={client_secret}")
    print(f"MAIL_REFRESH_TOKEN={refresh_token}")
    print("MAIL_SENDER=<the Gmail address you just authorized>")
    print(f"\nThe OAuth client must list {DEFAULT_REDIRECT_URI} as a redirect URI.")


if __name__ == "__main__":
    main()
