from __future__ import annotations

import getpass
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .cloudflare.tokens import TokenScoper


CTX_ACCOUNT_ID = "cf_account_id"
CTX_BOOTSTRAP_TOKEN = "cf_bootstrap_token"
CTX_PROJECT_NAME = "cf_project_name"

MIN_BOOTSTRAP_TOKEN_LENGTH = 20


class StepInputError(ValueError):
    """Operator input was rejected; the step should be asked again."""


@dataclass(frozen=True)
class WizardStep:
    label: str
    on_input: Callable[[str, Dict[str, str]], None]
    secret: bool = False


class SetupWizard:
    """Three prompts that collect setup inputs and run TokenScoper.setup on the last one.

    Steps share a plain dict context. The bootstrap token only lives in that
    context for the duration of one run.
    """

    def __init__(self, scoper: TokenScoper) -> None:
        self.scoper = scoper

    def _account_id(self, value: str, ctx: Dict[str, str]) -> None:
        if not value:
            raise StepInputError("account ID cannot be empty")
        ctx[CTX_ACCOUNT_ID] = value

    def _bootstrap_token(self, value: str, ctx: Dict[str, str]) -> None:
        if len(value) < MIN_BOOTSTRAP_TOKEN_LENGTH:
            raise StepInputError("token looks too short, paste the full token")
        ctx[CTX_BOOTSTRAP_TOKEN] = value

    def _project_name(self, value: str, ctx: Dict[str, str]) -> None:
        if not value:
            raise StepInputError("project name cannot be empty")
        ctx[CTX_PROJECT_NAME] = value
        self.scoper.setup(ctx[CTX_ACCOUNT_ID], ctx[CTX_BOOTSTRAP_TOKEN], value)

    def steps(self) -> List[WizardStep]:
        return [
            WizardStep(
                label="Cloudflare Account ID (dashboard.cloudflare.com, right sidebar)",
                on_input=self._account_id,
            ),
            WizardStep(
                label=(
                    "Bootstrap API Token (My Profile > API Tokens > Create Token with "
                    "'Edit user API tokens' permission)"
                ),
                on_input=self._bootstrap_token,
                secret=True,
            ),
            WizardStep(
                label="Cloudflare Pages project name (create it first at pages.cloudflare.com)",
                on_input=self._project_name,
            ),
        ]


def run_steps(
    steps: List[WizardStep],
    *,
    prompt: Callable[[str], str] = input,
    secret_prompt: Callable[[str], str] = getpass.getpass,
    report: Optional[Callable[[str], None]] = None,
    max_attempts: int = 3,
) -> Dict[str, str]:
    """Drive steps in order on a terminal.

    Rejected input is reported and asked again up to ``max_attempts`` times.
    Errors other than StepInputError abort the run.
    """
    ctx: Dict[str, str] = {}
    for step in steps:
        ask = secret_prompt if step.secret else prompt
        for attempt in range(1, max_attempts + 1):
            value = ask(f"{step.label}: ").strip()
            try:
                step.on_input(value, ctx)
                break
            except StepInputError as e:
                if report is not None:
                    report(f"invalid input: {e}")
                if attempt == max_attempts:
                    raise
    ctx.pop(CTX_BOOTSTRAP_TOKEN, None)
    return ctx
