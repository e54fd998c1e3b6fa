"""Directive assembly.

Maps client context onto the principle rule set: a system preamble, an
ordered list of instructions and a quality checklist. Pure configuration
assembly with no I/O; the same context always yields equal directives.
"""

from __future__ import annotations

from reverie.models.context import ClientContext, Directives
from reverie.models.journey import GenerationContract
from reverie.rules.schema import LanguageMasteryRules, Principle, PrincipleRules, RuleSet

SOMATIC = "somatic-anchoring"
METAPHOR = "metaphor-consistency"
RHYTHM = "language-rhythm"
SAFETY = "emotional-safety"
SPECIFICITY = "specificity-without-prescription"
WHOLENESS = "inherent-wholeness"

MAX_SAFETY_PHRASES = 5
DEFAULT_CLIENT_LEVEL = "beginner"
DEFAULT_DEPTH = "medium"


def _language_mastery_section(mastery: LanguageMasteryRules) -> str:
    forbidden = "\n".join(f'- NEVER: "{p}"' for p in mastery.forbidden_phrases)
    visual = ", ".join(f'"{c}..."' for c in mastery.forbidden_visual_commands)
    cliches = ", ".join(f'"{c}"' for c in mastery.forbidden_cliches)
    ai_patterns = ", ".join(f'"{p}..."' for p in mastery.ai_patterns)

    return f"""## LANGUAGE MASTERY RULES

### Tonal Balance: Direct Commands vs. Soft Invitations
Pattern: {mastery.tonal_ratio}
- Use direct commands ONLY for: opening, transitions, key somatic anchors, emergence
- Use soft invitations throughout deepening, the metaphor journey and transformation
- NEVER stack more than 2 direct commands in a row

### Language That Breaks Trance Depth
These phrases pull the client into analytical thinking:
{forbidden}
If it requires thinking, choosing, analyzing, or searching memory, REWRITE IT.
Direct the experience: "Your body remembers...", "A feeling of calm spreads through you..."

### Body as Subject
Never stack "you" constructions in consecutive sentences.
Use: "Your breath deepens. Shoulders soften. Warmth spreads."

### Inclusive Sensory Language
Never use visual-only commands: {visual}
Use: "Notice...", "Sense...", "Allow...", "Imagine...", "Become aware of..."

### Language Craft
- Forbidden cliches: {cliches}
- No em dashes
- No AI patterns: {ai_patterns}
- Vary sentence length: short for emphasis, medium for guidance, long for deepening"""


class DirectiveBuilder:
    """Assemble generation directives from a rule set.

    Args:
        rules: Rule set providing principles and language mastery tables.
    """

    def __init__(self, rules: RuleSet) -> None:
        self._principles: PrincipleRules = rules.principles
        self._mastery = rules.language_mastery
        self._by_id: dict[str, Principle] = {p.id: p for p in rules.principles.principles}

    def build(self, context: ClientContext) -> Directives:
        return Directives(
            system_prompt=self.system_prompt(),
            instructions=self.instructions(context),
            quality_reminders=self.quality_reminders(),
            principles_summary="\n".join(
                f"{p.name}: {p.rule}" for p in self._principles.principles
            ),
        )

    def system_prompt(self) -> str:
        principles = "\n\n".join(
            f"{i}. **{p.name}**: {p.description}\n   {p.why}"
            for i, p in enumerate(self._principles.principles, start=1)
        )
        return "\n\n".join(
            [
                self._principles.preamble,
                principles,
                self._principles.closing,
                _language_mastery_section(self._mastery),
            ]
        )

    def instructions(self, context: ClientContext) -> list[str]:
        """Ordered instructions, one block per principle."""
        p = self._principles
        instructions: list[str] = []

        instructions.extend(self._directives(SOMATIC))

        if context.symbolic_level > p.metaphor_threshold:
            instructions.extend(self._directives(METAPHOR))
        else:
            instructions.append(p.minimal_metaphor_instruction)

        if RHYTHM in self._by_id:
            instructions.extend(self._directives(RHYTHM))
            depth = p.depth_guidance.get(context.trance_depth) or p.depth_guidance.get(DEFAULT_DEPTH)
            if depth:
                instructions.append(depth)

        if SAFETY in self._by_id:
            instructions.extend(self._safety_instructions(context.client_level))

        instructions.extend(self._directives(SPECIFICITY))

        if WHOLENESS in self._by_id:
            if context.emergence_type == "sleep":
                instructions.extend(p.sleep_emergence)
            else:
                instructions.extend(self._directives(WHOLENESS))

        return instructions

    def quality_reminders(self) -> list[str]:
        reminders = [
            f"✓ {gate}" for principle in self._principles.principles for gate in principle.quality_gates
        ]
        reminders.append("")
        reminders.append("=== LANGUAGE MASTERY CHECKS ===")
        reminders.extend(self._principles.language_checks)
        reminders.append("")
        reminders.append("=== TRANCE DEPTH TEST ===")
        reminders.extend(self._principles.trance_depth_test)
        return reminders

    def build_enhanced_system_prompt(
        self, directives: Directives, contract: GenerationContract
    ) -> str:
        """Append the journey stages and primary metaphor to the system prompt."""
        sections = [directives.system_prompt, "## JOURNEY STAGES FOR THIS SCRIPT"]
        sections.append("Weave the following narrative arcs into the script, in order:")

        for stage in contract.stages:
            lines = [f"**{stage.arc_name}** ({stage.word_budget} words)"]
            if stage.prompt_integration:
                lines[0] += f": {stage.prompt_integration}"
            if stage.key_language:
                lines.append(f"Key language: {'; '.join(stage.key_language[:3])}")
            if stage.transition_goal:
                lines.append(f"Transition goal: {stage.transition_goal}")
            sections.append("\n".join(lines))

        metaphor = contract.primary_metaphor
        if metaphor is not None:
            sections.append(
                "\n".join(
                    [
                        "## PRIMARY METAPHOR",
                        f'Use the "{metaphor.family}" metaphor family.',
                        f"Primary images: {', '.join(metaphor.primary_images[:5])}",
                        f"Reason: {metaphor.reason}",
                        "IMPORTANT: Maintain metaphor consistency - all imagery must fit within this one metaphor world.",
                    ]
                )
            )

        return "\n\n".join(sections)

    def _directives(self, principle_id: str) -> list[str]:
        principle = self._by_id.get(principle_id)
        return list(principle.prompt_directives) if principle else []

    def _safety_instructions(self, client_level: str) -> list[str]:
        ratios = self._principles.safety_ratios
        ratio = ratios.get(client_level) or ratios.get(DEFAULT_CLIENT_LEVEL)
        instructions: list[str] = []
        if ratio is not None:
            instructions.extend(
                [
                    f"Use {ratio.permissive} permissive language (might, perhaps, could, if it feels right)",
                    f"Use {ratio.gentle_directive} gentle directive language",
                    f"Commands should be {ratio.commands} or less of the script",
                ]
            )
        instructions.extend(
            f'Include phrases like: "{phrase}"'
            for phrase in self._principles.safety_phrases[:MAX_SAFETY_PHRASES]
        )
        return instructions
