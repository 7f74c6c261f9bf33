"""Best-effort remote host detection from titles, argv and domain names."""

import re
from typing import Sequence

from .text_utils import cached_lower, extract_proc_name

SSH_FAMILY = frozenset({"ssh", "mosh", "mosh-client", "slogin"})

# ssh(1) options that consume the following token
SSH_OPTIONS_WITH_ARG = frozenset({
    "-B", "-b", "-c", "-D", "-E", "-e", "-F", "-I", "-i", "-J", "-L", "-l",
    "-m", "-O", "-o", "-p", "-P", "-Q", "-R", "-S", "-W", "-w",
    # mosh
    "--ssh", "--port", "--predict", "--family", "--server", "--client", "--bind-server",
})

HOSTNAME_RE = re.compile(r"^[A-Za-z0-9.-]+$")
AT_HOST_RE = re.compile(r"@([A-Za-z0-9.-]+)")
SSH_TITLE_RE = re.compile(r"sshh?\s*:?\s*([A-Za-z0-9.-]+)", re.IGNORECASE)
DOMAIN_SCHEME_RE = re.compile(r"^(?:sshh?|mosh)(?:mux)?:", re.IGNORECASE)
USER_PREFIX_RE = re.compile(r"^[^@\s]+@")
PORT_SUFFIX_RE = re.compile(r":\d+$")

LOCAL_DOMAIN = "local"


def is_ssh_process(executable: str | None) -> bool:
    """True for ssh, mosh, mosh-client and slogin (any directory)."""
    name = extract_proc_name(executable)
    return bool(name) and cached_lower(name) in SSH_FAMILY


def looks_like_hostname(text: str | None) -> bool:
    """A bare hostname-shaped token that is neither numeric-led nor ``local``."""
    if not text or not HOSTNAME_RE.match(text):
        return False
    return not text[0].isdigit() and cached_lower(text) != LOCAL_DOMAIN


def extract_host_from_title(title: str | None) -> str | None:
    """``user@host``, then ``ssh: host``.

    A title that is only a bare hostname is not accepted here; callers allow
    it when the foreground process is ssh-family.
    """
    if not title:
        return None
    match = AT_HOST_RE.search(title)
    if match:
        return match.group(1)
    match = SSH_TITLE_RE.search(title)
    if match:
        return match.group(1)
    return None


def extract_at_host(title: str | None) -> str | None:
    if not title:
        return None
    match = AT_HOST_RE.search(title)
    return match.group(1) if match else None


def clean_host_token(token: str) -> str | None:
    """Strip ``user@``, IPv6 brackets and a trailing ``:port``."""
    host = USER_PREFIX_RE.sub("", token)
    if host.startswith("["):
        end = host.find("]")
        host = host[1:end] if end != -1 else host[1:]
    elif host.count(":") == 1:
        host = PORT_SUFFIX_RE.sub("", host)
    return host or None


def first_host_argument(argv: Sequence[str]) -> str | None:
    """First non-option token of an ssh/mosh argv (argv[0] is the program).

    Options listed in SSH_OPTIONS_WITH_ARG consume the next token; ``--``
    ends option parsing.
    """
    args = list(argv[1:]) if argv and is_ssh_process(argv[0]) else list(argv)
    i = 0
    while i < len(args):
        token = str(args[i])
        if token == "--":
            return args[i + 1] if i + 1 < len(args) else None
        if token.startswith("-") and len(token) > 1:
            if token in SSH_OPTIONS_WITH_ARG and "=" not in token:
                i += 2
            else:
                i += 1
            continue
        return token
    return None


def host_from_argv(executable: str | None, argv: Sequence[str]) -> str | None:
    """Destination host of an SSH-family command line."""
    if not is_ssh_process(executable or (argv[0] if argv else None)):
        return None
    token = first_host_argument(argv)
    if not token:
        return None
    return clean_host_token(token)


def parse_domain_host(domain: str | None) -> str | None:
    """Host named by a multiplexer domain (``SSH:user@db1:22`` -> ``db1``).

    ``local`` and numeric-led names are rejected.
    """
    if not domain:
        return None
    folded = cached_lower(domain)
    if "ssh" in folded or "mosh" in folded:
        host = DOMAIN_SCHEME_RE.sub("", domain)
        host = USER_PREFIX_RE.sub("", host)
        host = PORT_SUFFIX_RE.sub("", host)
        if host and cached_lower(host) != LOCAL_DOMAIN and not host.isdigit():
            return host
        return None
    if looks_like_hostname(domain):
        return domain
    return None
