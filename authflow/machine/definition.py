"""The sign-in / sign-up / password-recovery state table."""

from __future__ import annotations

from authflow.config import FlowConfig
from authflow.core.events import EventKind
from authflow.machine import actions, guards
from authflow.machine.states import (
    Action,
    InvokeKind,
    MachineDefinition,
    StateKind,
    StateNode,
    Transition,
)

MACHINE_ID = "signInSignUp"

SIGN_IN = "signIn"
SIGN_IN_CHECK = "signIn.check"
SIGN_IN_EMPTY = "signIn.empty"
SIGN_IN_READY = "signIn.ready"
FORGOT_PASSWORD = "signIn.forgotPassword"
CHECK_EMAIL_ENTERED = "signIn.forgotPassword.checkEmailEntered"
ENTER_EMAIL = "signIn.forgotPassword.enterEmail"
READY_TO_SEND = "signIn.forgotPassword.readyToSend"
SENDING_ONE_TIME_PASSWORD = "signIn.forgotPassword.sendingOneTimePassword"
ONE_TIME_PASSWORD_SENT = "signIn.forgotPassword.oneTimePasswordSent"
UNKNOWN_EMAIL = "signIn.forgotPassword.unknownEmail"
AUTHENTICATING = "authenticating"
AUTHENTICATED = "authenticated"
FAILURE = "failure"
SIGN_UP = "signUp"
REGISTERING = "registering"
REGISTERED = "registered"


def _to(target: str, *acts: Action) -> tuple[Transition, ...]:
    return (Transition(target=target, actions=acts),)


def build_auth_machine(config: FlowConfig | None = None) -> MachineDefinition:
    """Build the authentication flow state table.

    ``config.known_recipients`` decides which emails may receive a one-time
    password.
    """
    config = config or FlowConfig()
    update_credentials = _to(SIGN_IN_CHECK, actions.merge_update)
    update_email = _to(CHECK_EMAIL_ENTERED, actions.merge_update)

    nodes = [
        StateNode(
            path=SIGN_IN,
            kind=StateKind.COMPOUND,
            initial="check",
            on={EventKind.SIGNUP: _to(SIGN_UP)},
        ),
        StateNode(
            path=SIGN_IN_CHECK,
            kind=StateKind.TRANSIENT,
            always=(
                Transition(target=SIGN_IN_READY, guard=guards.has_credentials),
                Transition(target=SIGN_IN_EMPTY),
            ),
        ),
        StateNode(
            path=SIGN_IN_EMPTY,
            kind=StateKind.LEAF,
            on={
                EventKind.UPDATE: update_credentials,
                EventKind.FORGOT_PASSWORD: _to(FORGOT_PASSWORD),
            },
        ),
        StateNode(
            path=SIGN_IN_READY,
            kind=StateKind.LEAF,
            on={
                EventKind.UPDATE: update_credentials,
                EventKind.FORGOT_PASSWORD: _to(FORGOT_PASSWORD),
                EventKind.AUTHENTICATE: _to(AUTHENTICATING),
            },
        ),
        StateNode(
            path=FORGOT_PASSWORD,
            kind=StateKind.COMPOUND,
            initial="checkEmailEntered",
        ),
        StateNode(
            path=CHECK_EMAIL_ENTERED,
            kind=StateKind.TRANSIENT,
            always=(
                Transition(target=READY_TO_SEND, guard=guards.is_valid_email),
                Transition(target=ENTER_EMAIL),
            ),
        ),
        StateNode(
            path=ENTER_EMAIL,
            kind=StateKind.LEAF,
            on={
                EventKind.UPDATE: update_email,
                EventKind.CANCEL: _to(SIGN_IN_CHECK),
            },
        ),
        StateNode(
            path=READY_TO_SEND,
            kind=StateKind.LEAF,
            on={
                EventKind.UPDATE: update_email,
                EventKind.CANCEL: _to(SIGN_IN_CHECK),
                EventKind.REQUEST_ONE_TIME_PASSWORD: (
                    Transition(
                        target=SENDING_ONE_TIME_PASSWORD,
                        guard=guards.is_known_recipient(config.known_recipients),
                    ),
                    Transition(
                        target=UNKNOWN_EMAIL,
                        actions=(actions.record_unknown_recipient,),
                    ),
                ),
            },
        ),
        StateNode(
            path=SENDING_ONE_TIME_PASSWORD,
            kind=StateKind.INVOKING,
            invoke=InvokeKind.SEND_ONE_TIME_PASSWORD,
            on={
                EventKind.INVOKE_SUCCEEDED: _to(ONE_TIME_PASSWORD_SENT),
                EventKind.INVOKE_FAILED: _to(UNKNOWN_EMAIL, actions.record_delivery_failure),
                EventKind.CANCEL: _to(SIGN_IN_CHECK),
            },
        ),
        StateNode(
            path=ONE_TIME_PASSWORD_SENT,
            kind=StateKind.LEAF,
            on={EventKind.OK: _to(SIGN_IN_CHECK)},
        ),
        StateNode(
            path=UNKNOWN_EMAIL,
            kind=StateKind.LEAF,
            on={EventKind.OK: _to(ENTER_EMAIL)},
        ),
        StateNode(
            path=AUTHENTICATING,
            kind=StateKind.INVOKING,
            invoke=InvokeKind.AUTHENTICATE,
            on={
                EventKind.INVOKE_SUCCEEDED: _to(AUTHENTICATED, actions.mark_authenticated),
                EventKind.INVOKE_FAILED: _to(FAILURE, actions.record_failure),
            },
        ),
        StateNode(
            path=AUTHENTICATED,
            kind=StateKind.LEAF,
            on={EventKind.SIGNOUT: _to(SIGN_IN, actions.mark_signed_out)},
        ),
        StateNode(
            path=FAILURE,
            kind=StateKind.LEAF,
            on={
                EventKind.SIGNIN: _to(SIGN_IN),
                EventKind.SIGNUP: _to(SIGN_UP),
            },
        ),
        StateNode(
            path=SIGN_UP,
            kind=StateKind.LEAF,
            on={
                EventKind.SIGNIN: _to(SIGN_IN),
                EventKind.REGISTER: _to(REGISTERING),
            },
        ),
        StateNode(
            path=REGISTERING,
            kind=StateKind.LEAF,
            on={
                EventKind.ERROR: _to(SIGN_UP),
                EventKind.SUCCESS: _to(REGISTERED),
            },
        ),
        StateNode(
            path=REGISTERED,
            kind=StateKind.LEAF,
            on={EventKind.SIGNIN: _to(SIGN_IN)},
        ),
    ]
    return MachineDefinition(id=MACHINE_ID, initial=SIGN_IN, nodes=nodes)


__all__ = [
    "AUTHENTICATED",
    "AUTHENTICATING",
    "CHECK_EMAIL_ENTERED",
    "ENTER_EMAIL",
    "FAILURE",
    "FORGOT_PASSWORD",
    "MACHINE_ID",
    "ONE_TIME_PASSWORD_SENT",
    "READY_TO_SEND",
    "REGISTERED",
    "REGISTERING",
    "SENDING_ONE_TIME_PASSWORD",
    "SIGN_IN",
    "SIGN_IN_CHECK",
    "SIGN_IN_EMPTY",
    "SIGN_IN_READY",
    "SIGN_UP",
    "UNKNOWN_EMAIL",
    "build_auth_machine",
]
