from pydantic_ai import RunContext

from krops.agent.core import agronomist_agent
from krops.agent.deps import ScanDeps


@agronomist_agent.system_prompt
def localisation_rules(ctx: RunContext[ScanDeps]) -> str:
    lang = ctx.deps.language.value
    return (
        f"All descriptive fields must be written naturally in {lang}, using the {lang} script. "
        f"Crop and disease names must be given in {lang} followed by the English name in "
        f"parentheses. Keep medicineName in English."
    )


def build_user_prompt(description: str) -> str:
    description = description.strip() or "No description provided."
    return f'Analyse this crop image. Farmer\'s description: "{description}"'
