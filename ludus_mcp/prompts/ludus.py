"""Workflow prompts for building and operating Ludus ranges.

Prompt arguments arrive as strings, so flags are parsed leniently.
"""

from fastmcp import FastMCP

from ludus_mcp.config import RANGE_CONFIG_DIRNAME

PROMPT_NAMES = ("create-ludus-range", "execute-ludus-cmd")

TRUTHY = frozenset({"true", "t", "1", "yes", "y"})


def is_truthy(value: str | None) -> bool:
    return value is not None and value.strip().lower() in TRUTHY


def create_ludus_range(
    requirements: str, roles: str | None = None, save_config: str | None = None
) -> str:
    """Walk through designing, validating and saving a range configuration."""
    save = is_truthy(save_config)
    lines = [f"Create a Ludus cyber range with these requirements: {requirements}"]
    if roles:
        lines.append(f"User-specified roles to consider: {roles}")

    lines += [
        "",
        "Work through these steps in order.",
        "",
        "STEP 1: UNDERSTAND",
        "- List the VMs (workstations, servers, domain controllers), the services",
        "  and tooling (AD, SCCM, Elastic, EDR), and the network needs (VLANs,",
        "  Tailscale) the requirements call for.",
        "- Ask clarifying questions if critical details are missing.",
    ]
    if roles:
        lines.append(f"- Check that the roles {roles} fit the requirements.")

    lines += [
        "",
        "STEP 2: RESEARCH",
        "1. list_templates: VM templates available on the server.",
        "2. get_tags: Ansible tags that deploy_range can run.",
        "3. list_range_configs: existing configurations to reuse.",
        "4. read_range_config: study one to three relevant configurations.",
        "5. get_range_config: the configuration currently set for the range.",
        "If a requirement needs a role that is not an official Ludus role, ask the",
        "user before adding community or third-party roles.",
        "",
        "STEP 3: BUILD THE CONFIG",
        "- Write YAML with a top-level 'ludus' list. Every VM needs vm_name,",
        "  hostname, template, vlan, ip_last_octet, ram_gb and cpus.",
        "- Use {{LudusCredName-<user>-<credName>}} placeholders for external",
        "  service credentials (API keys, SaaS tokens, cloud keys).",
        "- Range-internal passwords (AD, SCCM, local accounts) may be literal.",
        "- Redact external credentials as REDACTED-CREDENTIAL when showing the",
        "  config.",
    ]
    if roles:
        lines.append(f"- Prefer the user-specified roles: {roles}")

    lines += [
        "",
        "STEP 4: VALIDATE",
        "- Run validate_range_config with the YAML as 'content'.",
        "- Fix every error and review every warning before going further.",
        "",
        "STEP 5: SAVE AND HAND OFF",
    ]
    if save:
        lines += [
            "- Save the validated config with write_range_config.",
            "- It can then be applied with set_range_config using config_path",
            f"  '{RANGE_CONFIG_DIRNAME}/<relativePath>'.",
        ]
    else:
        lines.append(
            "- Show the final config. Save it with write_range_config only if "
            "the user asks."
        )
    lines += [
        "- Summarize the VMs, roles and any credentials the user must create.",
        "",
        "PERMISSIONS:",
        "- Ask before calling set_range_config, and name the target user.",
        "- Never call deploy_range unless the user explicitly confirms.",
    ]
    return "\n".join(lines)


def execute_ludus_cmd(
    command_intent: str,
    target_user: str | None = None,
    confirm_destructive: str | None = None,
) -> str:
    """Run a Ludus CLI command with tool preference and confirmation rules."""
    confirmed = is_truthy(confirm_destructive)
    lines = [
        f"Execute a Ludus CLI command to: {command_intent}",
        f"Target user: {target_user}" if target_user else "Target: current user",
    ]
    if confirmed:
        lines.append("DESTRUCTIVE ACTION CONFIRMED by user")

    lines += [
        "",
        "STEP 1: ASSESS RISK",
        "- Informational (status, list, logs, help): low risk.",
        "- Configuration (set config): medium risk.",
        "- Deployment (deploy, power): high risk.",
        "- Destructive (range rm, users rm, abort): critical risk.",
        "",
        "STEP 2: PREFER DEDICATED TOOLS",
        "- Deploy: deploy_range. Destroy: destroy_range. Abort: range_abort.",
        "- Status: get_range_status. Ranges: list_user_ranges.",
        "- Config: get_range_config and set_range_config. Logs: get_range_logs.",
        "- Power: ludus_power. Templates: list_templates. Help: ludus_help.",
        "Use ludus_cli_execute only when no dedicated tool covers the need.",
        "",
        "STEP 3: CHECK STATE",
        "For anything beyond informational, call get_range_status first and",
        "say what the command will change.",
        "",
        "STEP 4: DESTRUCTIVE ACTIONS",
        "Explain exactly what will be removed, then wait for explicit",
        "confirmation. Never run a destructive command without it.",
    ]
    if target_user:
        lines += [
            "",
            "ADMIN OPERATION:",
            f"This acts on the resources of '{target_user}' and needs an admin",
            "API key. Pass it as the 'user' argument, e.g.",
            f'ludus_cli_execute(command="range status", user="{target_user}").',
        ]
    lines += [
        "",
        "STEP 5: RUN WITH ludus_cli_execute",
        '- Leave out the "ludus" prefix: command="range status".',
        '- For help use ludus_help or a flag: command="range --help".',
        '  There is no "help" subcommand.',
        "- On failure check the errorKind, the command syntax with --help, and",
        "  the user's permissions.",
        "",
        (
            "PROCEED with the destructive action; the user has confirmed."
            if confirmed
            else "If the command is destructive, STOP and ask for confirmation first."
        ),
    ]
    return "\n".join(lines)


def register_prompts(server: FastMCP) -> None:
    """Register the Ludus workflow prompts on the server."""
    server.prompt(
        name="create-ludus-range",
        description=(
            "Create a complete Ludus cyber range from your requirements, from "
            "planning through validation."
        ),
    )(create_ludus_range)
    server.prompt(
        name="execute-ludus-cmd",
        description=(
            "Safely execute Ludus CLI commands, preferring dedicated tools and "
            "confirming destructive actions."
        ),
    )(execute_ludus_cmd)
