#!/usr/bin/env python3
"""Send a test verification email and print the result. Use to debug Mailgun delivery.
Usage: from project root, run:
  python scripts/test_verification_email.py someone@example.com
"""
import logging
import os
import sys

# Project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/test_verification_email.py <email>")
        return 1
    to_email = sys.argv[1].strip()
    from pathlib import Path
    from app.config import _env_path, get_settings
    from app.services.notifications import MailgunNotifier
    from app.services.users import generate_verification_token

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    s = get_settings()
    print("Verification email test")
    print(f"  .env path: {_env_path} (exists: {Path(_env_path).exists()})")
    print("  Config:")
    print(f"    MAILGUN_DOMAIN={repr(s.mailgun_domain) or '(empty)'}")
    print(f"    MAILGUN_FROM_EMAIL={repr(s.mailgun_from_email) or '(default)'}")
    print(f"    MAILGUN_API_KEY={'set (hidden)' if s.mailgun_api_key else '(empty)'}")
    print(f"    BASE_URL={s.base_url}")
    print(f"  Sending verification link to: {to_email}")
    print("-" * 50)

    ok = MailgunNotifier(s).send_verification_email(to_email, "Test User", generate_verification_token())
    print("-" * 50)
    if ok and s.mailgun_configured:
        print("Result: SUCCESS - Mailgun accepted the message.")
        print("  If you do not receive it: check spam; if using a sandbox domain, add this address in Mailgun Dashboard > Authorized recipients.")
    elif ok:
        print("Result: NOT SENT - Mailgun is not configured; the link was logged above.")
    else:
        print("Result: FAILED - See log lines above for cause.")
        print("  Fix .env (MAILGUN_API_KEY, MAILGUN_DOMAIN), then run this script again.")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
