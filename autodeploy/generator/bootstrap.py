"""
Post-clone step for startup scripts so the app listens on every interface.
"""

from typing import List

BOOTSTRAP_KEYS = frozenset({"user_data", "metadata_startup_script", "custom_data", "startup_script"})

LOCALHOST_STEP = (
    r"find . -name '*.py' -exec sed -i 's/127\.0\.0\.1/0.0.0.0/g' {} \; && "
    r"find . -name '*.py' -exec sed -i 's/localhost/0.0.0.0/g' {} \; && "
    r"find . \( -name '*.html' -o -name '*.js' -o -name '*.ts' \) "
    r"-exec sed -i 's/http:\/\/localhost:[0-9]*//g' {} \;"
)
CHAIN = " && "


def _is_cd(command: str) -> bool:
    return command.strip().startswith("cd ")


def _normalize_lines(script: str) -> str:
    lines: List[str] = script.split("\n")
    clone = next(i for i, line in enumerate(lines) if "git clone" in line)
    if CHAIN in lines[clone]:
        # clone, cd and start share one && list; the step belongs inside it
        lines[clone] = _normalize_chain(lines[clone])
        return "\n".join(lines)
    insert_at = clone + 1
    if insert_at < len(lines) and _is_cd(lines[insert_at]):
        insert_at += 1
    lines.insert(insert_at, LOCALHOST_STEP)
    return "\n".join(lines)


def _normalize_chain(script: str) -> str:
    commands = script.split(CHAIN)
    clone = next(i for i, cmd in enumerate(commands) if "git clone" in cmd)
    insert_at = clone + 1
    if insert_at < len(commands) and _is_cd(commands[insert_at]):
        insert_at += 1
    commands.insert(insert_at, LOCALHOST_STEP)
    return CHAIN.join(commands)


def normalize_bootstrap(script: str) -> str:
    """
    Insert the localhost-to-0.0.0.0 rewrite right after ``git clone`` (and the
    ``cd`` into the checkout, when there is one).

    Scripts without a clone, and scripts that already carry the step, are
    returned unchanged.
    """
    if "git clone" not in script or LOCALHOST_STEP in script:
        return script
    if "\n" in script.strip():
        return _normalize_lines(script)
    return _normalize_chain(script)
