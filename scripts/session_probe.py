#!/usr/bin/env python3
"""Live session probe against a marketplace deployment.

Signs in, reports the projected session and token state, optionally forces a
refresh check, and prints the user's registration draft when onboarding is
still open.

Credential sourcing:
- KAPPA_PROBE_EMAIL
- KAPPA_PROBE_PASSWORD

Everything else comes from the usual ``KAPPA_*`` configuration variables
(``KAPPA_API_URL``, ``KAPPA_COGNITO_CLIENT_ID``, ...).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pykappa import (  # noqa: E402
    KappaClient,
    KappaConfig,
    KappaError,
    OnboardingFinishedError,
    PasswordChangeRequiredError,
    UserNotConfirmedError,
)
from pykappa._redact import redact_for_log  # noqa: E402


def _require_env(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise SystemExit(f"Missing required environment variable: {name}")
    return value


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a live pykappa sign-in and session check")
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Call ensure_session() after login and report whether the record changed.",
    )
    parser.add_argument(
        "--draft",
        action="store_true",
        help="Load and print the registration draft when onboarding is not finished.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable DEBUG logging (payloads are redacted).",
    )
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    config = KappaConfig.from_env()
    email = _require_env("KAPPA_PROBE_EMAIL")
    password = _require_env("KAPPA_PROBE_PASSWORD")

    async with KappaClient(config) as client:
        try:
            session = await client.login(email, password)
        except PasswordChangeRequiredError:
            print("Sign-in requires a new password; finish the challenge in the web app first")
            return 2
        except UserNotConfirmedError:
            print("Account email is not confirmed")
            return 2
        except KappaError as exc:
            print(f"Sign-in failed: {exc}")
            return 1

        summary = session.model_dump(exclude={"access_token", "id_token"})
        print(json.dumps(summary, indent=2, sort_keys=True, default=str))
        print(f"Token state: {client.token_state()}")

        if args.refresh:
            before = client.record
            await client.ensure_session()
            changed = before is not None and client.record is not None and before.id_token != client.record.id_token
            print(f"ensure_session(): {'refreshed' if changed else 'unchanged'}")

        if args.draft and session.needs_onboarding:
            wizard = client.registration_wizard()
            try:
                step = await wizard.start(session)
            except OnboardingFinishedError:
                print("Onboarding already finished")
                return 0
            print(f"Wizard resumes at step {step}")
            print(json.dumps(redact_for_log(wizard.form.cacheable()), indent=2, sort_keys=True))
            wizard.close()

    return 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
