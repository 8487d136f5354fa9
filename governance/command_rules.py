"""Pattern rules for blocking destructive shell commands.

Detection is deliberately shallow: each rule is one compiled pattern run
over the lower-cased command text. Rules are grouped into three families
and evaluated in declaration order, so the first hit decides the message.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum


class RuleKind(StrEnum):
    """Families of safety rules."""

    DANGEROUS = "dangerous"
    PIPE_TO_SHELL = "pipe_to_shell"
    CHAINING = "chaining"


@dataclass(frozen=True)
class SafetyRule:
    """A named predicate over a raw command string."""

    name: str
    kind: RuleKind
    label: str
    pattern: re.Pattern[str]

    def matches(self, command: str) -> bool:
        return self.pattern.search(command) is not None


@dataclass(frozen=True)
class RuleViolation:
    """First rule a command violated, with the user-facing reason."""

    rule: SafetyRule
    reason: str
    subcommand: str | None = None


# Command-position rules are anchored to the start of a (sub)command. Any
# run of wrapper prefixes (subshell brackets, sudo, env, nohup, exec,
# command, time, nice, timeout, xargs, VAR=value) may come first.
_WRAPPER = (
    r"(?:[({]\s*"
    r"|sudo\s+(?:-\S+\s+)*"
    r"|env\s+(?:-\S+\s+)*"
    r"|(?:nohup|exec|command|builtin|time)\s+(?:-\S+\s+)*"
    r"|nice\s+(?:-n\s*-?\d+\s+|-\d+\s+|--adjustment=-?\d+\s+)?"
    r"|timeout\s+(?:-\S+\s+)*\S+\s+"
    r"|xargs\s+(?:-\S+\s+(?:\d+\s+)?)*"
    r"|\w+=\S*\s+)"
)
_AT_START = rf"^{_WRAPPER}*"

# Inline scripts handed to a shell with -c are checked like a command line.
_SHELL_SCRIPT = re.compile(
    r"(?:^|[\s;&|(`/])(?:sh|bash|zsh|dash|ksh|fish|csh|tcsh)\s+(?:-\S+\s+)*"
    r"-[a-z]*c\s+(?:'([^']*)'|\"([^\"]*)\"|(\S+))"
)


def _command_rule(name: str, label: str, body: str) -> SafetyRule:
    return SafetyRule(name, RuleKind.DANGEROUS, label, re.compile(_AT_START + body))


def _anywhere_rule(name: str, label: str, body: str) -> SafetyRule:
    return SafetyRule(name, RuleKind.DANGEROUS, label, re.compile(body))


DANGEROUS_RULES: tuple[SafetyRule, ...] = (
    _command_rule(
        "recursive_force_delete",
        "rm -rf /",
        r"rm\s+(?=(?:-\S+\s+)*-[-a-z]*r)(?=(?:-\S+\s+)*-[-a-z]*f)(?:-\S+\s+)+[\"']?(?:/|\*|~)",
    ),
    _command_rule(
        "windows_recursive_delete",
        "del /s /q",
        r"(?:del|erase|rd|rmdir)(?=.*\s/s\b)(?=.*\s/q\b)\s",
    ),
    _command_rule("shutdown", "shutdown", r"(?:shutdown|reboot|halt|poweroff)(?:\s|$)"),
    _command_rule("init_runlevel", "init 0/6", r"(?:init|telinit)\s+[06](?:\s|$)"),
    _command_rule(
        "systemctl_power",
        "systemctl poweroff",
        r"systemctl\s+(?:-\S+\s+)*(?:poweroff|reboot|halt|kexec)\b",
    ),
    _command_rule("format", "format", r"format(?:\s|$)"),
    _command_rule("mkfs", "mkfs", r"mkfs(?:\.\w+)?(?:\s|$)"),
    _command_rule("partition", "fdisk", r"(?:fdisk|sfdisk|cfdisk|gdisk|parted|wipefs)(?:\s|$)"),
    _command_rule("raw_disk_copy", "dd if=", r"dd\s+(?:\S+\s+)*(?:if|of)="),
    _command_rule(
        "recursive_root_permissions",
        "chown -R /",
        r"(?:chmod|chown|chgrp)\s+(?:\S+\s+)*-[a-z]*r[a-z]*\s+(?:\S+\s+)*/(?:\*)?(?:\s|$)",
    ),
    _command_rule("world_writable", "chmod 777", r"chmod\s+(?:-\S+\s+)*0?777(?:\s|$)"),
    _command_rule("kill_all", "kill -1", r"kill\s+(?:-\S+\s+)*-1(?:\s|$)"),
    _anywhere_rule(
        "raw_device_write",
        "> /dev/sd*",
        r">\s*/dev/(?:sd[a-z]|hd[a-z]|vd[a-z]|xvd[a-z]|nvme\d|mmcblk\d|disk\d)",
    ),
    _anywhere_rule("fork_bomb", ":(){ :|:& };:", r":\s*\(\s*\)\s*\{\s*:\s*\|\s*:\s*&\s*\}\s*;\s*:"),
)

# A lone "&" inside a redirection (2>&1, >&2, &>) is not an operator.
_CHAIN_OPERATORS = r"&&|\|\||(?<![<>])&(?!>)|[;|\n`]|\$\("

PIPE_TO_SHELL_RULE = SafetyRule(
    "pipe_to_shell",
    RuleKind.PIPE_TO_SHELL,
    "Pipe to shell execution is not allowed",
    re.compile(
        r"\|\s*(?:sudo\s+(?:-\S+\s+)*)?(?:\S*/)?(?:sh|bash|zsh|dash|ksh|fish|csh|tcsh)(?:\s|$|[;&|)])"
    ),
)

CHAINING_RULE = SafetyRule(
    "chaining",
    RuleKind.CHAINING,
    "Command chaining contains unsafe command",
    re.compile(_CHAIN_OPERATORS),
)

_SUBCOMMAND_SPLIT = re.compile(_CHAIN_OPERATORS)


def normalize_command(command: str) -> str:
    """Lower-case and trim a command for matching."""
    return command.strip().lower()


def split_subcommands(command: str) -> list[str]:
    """Split a compound command on chaining operators."""
    parts = []
    for part in _SUBCOMMAND_SPLIT.split(command):
        cleaned = part.strip().lstrip("({").strip()
        if cleaned:
            parts.append(cleaned)
    return parts


def inline_scripts(command: str) -> list[str]:
    """Extract the script arguments of ``sh -c``-style invocations."""
    scripts = []
    for match in _SHELL_SCRIPT.finditer(command):
        script = next((group for group in match.groups() if group is not None), "")
        if script.strip():
            scripts.append(script)
    return scripts


def match_dangerous(
    command: str, rules: tuple[SafetyRule, ...] = DANGEROUS_RULES
) -> SafetyRule | None:
    """Return the first dangerous rule matching an already-normalized command."""
    for rule in rules:
        if rule.matches(command):
            return rule
    return None


def find_violation(
    command: str, rules: tuple[SafetyRule, ...] = DANGEROUS_RULES
) -> RuleViolation | None:
    """Run the dangerous, pipe-to-shell and chaining checks in order."""
    text = normalize_command(command)

    rule = match_dangerous(text, rules)
    if rule is not None:
        return RuleViolation(rule, f"Contains dangerous pattern: {rule.label}")

    for script in inline_scripts(text):
        inner = find_violation(script, rules)
        if inner is not None:
            return inner

    if PIPE_TO_SHELL_RULE.matches(text):
        return RuleViolation(PIPE_TO_SHELL_RULE, PIPE_TO_SHELL_RULE.label)

    if CHAINING_RULE.matches(text):
        for part in split_subcommands(text):
            if match_dangerous(part, rules) is not None:
                return RuleViolation(
                    CHAINING_RULE, f"{CHAINING_RULE.label}: {part}", subcommand=part
                )
    return None
