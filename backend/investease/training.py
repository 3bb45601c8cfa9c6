"""Training packs: authored deep-training content plus a generated fallback."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .catalog import Lesson

MAX_FALLBACK_QUESTIONS = 3


class FrameworkCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    prompt: str


class WorkedExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    scenario: str
    walkthrough: List[str] = Field(default_factory=list)


class ResearchTask(BaseModel):
    """Open-source research assignment, completed with public filings and data."""

    model_config = ConfigDict(frozen=True)

    title: str
    instructions: str
    sources: List[str] = Field(default_factory=list)


class CheckpointQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    options: List[str] = Field(..., min_length=1)
    correct_index: int = Field(..., ge=0)
    explanation: str = ""

    @model_validator(mode="after")
    def _correct_index_in_range(self) -> "CheckpointQuestion":
        if self.correct_index >= len(self.options):
            raise ValueError(
                f"correct_index {self.correct_index} is outside the {len(self.options)} available options."
            )
        return self


class TrainingPack(BaseModel):
    model_config = ConfigDict(frozen=True)

    lesson_id: str
    overview: List[str] = Field(default_factory=list)
    framework_cards: List[FrameworkCard] = Field(default_factory=list)
    worked_examples: List[WorkedExample] = Field(default_factory=list)
    research_tasks: List[ResearchTask] = Field(default_factory=list)
    checkpoint: List[CheckpointQuestion] = Field(default_factory=list)
    generated: bool = False


_FALLBACK_FRAMEWORK = (
    FrameworkCard(title="Claim", prompt="State the single conclusion you are testing in one sentence."),
    FrameworkCard(title="Evidence", prompt="List the facts from filings or data that support or weaken the claim."),
    FrameworkCard(title="Risk", prompt="Name what would have to be true for the claim to be wrong."),
    FrameworkCard(title="Decision", prompt="Record the action you would take and the trigger that would change it."),
)

_FALLBACK_OPTIONS = [
    "Skip the step and rely on the latest price move.",
    "Work through the step with evidence and write down what it shows.",
    "Adopt the conclusion of a popular online post.",
]


def build_fallback_pack(lesson: Lesson) -> TrainingPack:
    """Synthesize a checkpoint-capable pack from the lesson's own content."""
    questions = [
        CheckpointQuestion(
            prompt=f"What is the most reliable way to complete this step: {activity}",
            options=list(_FALLBACK_OPTIONS),
            correct_index=1,
            explanation="Evidence-backed notes make the step repeatable and let you review your reasoning later.",
        )
        for activity in lesson.activities[:MAX_FALLBACK_QUESTIONS]
    ]
    return TrainingPack(
        lesson_id=lesson.id,
        overview=[
            f"{lesson.title} builds one repeatable research habit.",
            f"Objective: {lesson.objective}",
            "Work through each activity in order, then confirm your understanding at the checkpoint.",
        ],
        framework_cards=list(_FALLBACK_FRAMEWORK),
        worked_examples=[
            WorkedExample(
                title=f"Applying {lesson.title} to one listed company",
                scenario="Pick a company you already follow and apply the lesson objective to its latest annual report.",
                walkthrough=[
                    "Write the claim you expect the report to support.",
                    "Collect two pieces of evidence for it and one against it.",
                    "Decide whether the evidence changes your original view.",
                ],
            )
        ],
        research_tasks=[
            ResearchTask(
                title="Open-source evidence log",
                instructions=(
                    f"Use public filings and investor presentations to gather evidence for: {lesson.objective}"
                ),
                sources=["Annual reports", "Investor presentations", "Regulatory filings"],
            )
        ],
        checkpoint=questions,
        generated=True,
    )


AUTHORED_PACKS: Dict[str, TrainingPack] = {
    "business-models": TrainingPack(
        lesson_id="business-models",
        overview=[
            "A business model explains who pays, what they pay for, and what it costs to deliver.",
            "Industry forces decide how much of that value the business keeps over time.",
            "Barriers to entry protect returns only while customers cannot easily switch.",
        ],
        framework_cards=[
            FrameworkCard(title="Revenue engine", prompt="Which customer pays, how often, and why do they come back?"),
            FrameworkCard(title="Cost structure", prompt="Which costs grow with sales and which stay fixed?"),
            FrameworkCard(title="Five forces", prompt="Where do buyers, suppliers, substitutes, entrants, or rivals squeeze margins?"),
            FrameworkCard(title="Moat check", prompt="What would a well-funded entrant need to copy to win customers?"),
        ],
        worked_examples=[
            WorkedExample(
                title="Subscription software versus airline",
                scenario="Compare a software firm with recurring contracts and an airline selling single tickets.",
                walkthrough=[
                    "Software: contracted revenue, low marginal cost, high switching costs.",
                    "Airline: price-sensitive buyers, powerful suppliers, heavy fixed costs.",
                    "Conclusion: the software firm keeps more of the value it creates.",
                ],
            )
        ],
        research_tasks=[
            ResearchTask(
                title="Three-business comparison",
                instructions="Fill the comparison worksheet for three listed businesses using their latest annual reports.",
                sources=["Annual reports", "Segment disclosures", "Industry association data"],
            )
        ],
        checkpoint=[
            CheckpointQuestion(
                prompt="Which signal most strongly suggests high customer switching costs?",
                options=[
                    "Frequent price promotions to win new buyers.",
                    "Multi-year contracts with deep workflow integration.",
                    "A large marketing budget.",
                ],
                correct_index=1,
                explanation="Integration and long contracts make leaving costly, which supports pricing power.",
            ),
            CheckpointQuestion(
                prompt="A business depends on a single supplier for a critical input. Which force is elevated?",
                options=["Buyer power", "Threat of substitutes", "Supplier power"],
                correct_index=2,
                explanation="A concentrated supplier can raise prices and capture margin.",
            ),
            CheckpointQuestion(
                prompt="Which barrier to entry is usually the most durable?",
                options=[
                    "A temporary cost advantage from a weak currency.",
                    "A popular product launch this year.",
                    "Network effects that grow with every new user.",
                ],
                correct_index=2,
                explanation="Network effects strengthen with scale, making them harder for entrants to copy.",
            ),
        ],
    ),
    "fair-value": TrainingPack(
        lesson_id="fair-value",
        overview=[
            "Fair value is a range built from explicit assumptions, not a single number.",
            "Scenario cases show how sensitive the value is to growth and margin assumptions.",
            "Margin of safety is the gap between price and the conservative end of the range.",
        ],
        framework_cards=[
            FrameworkCard(title="Baseline case", prompt="What growth and margin does the business deliver if nothing changes?"),
            FrameworkCard(title="Optimistic case", prompt="Which specific improvement would lift value, and how likely is it?"),
            FrameworkCard(title="Conservative case", prompt="What does value look like if the main risk plays out?"),
            FrameworkCard(title="Price check", prompt="Is the current price below, inside, or above your value range?"),
        ],
        worked_examples=[
            WorkedExample(
                title="Three-case earnings multiple",
                scenario="A retailer earns 2.00 per share; peers trade between 12x and 18x earnings.",
                walkthrough=[
                    "Conservative: 1.80 earnings at 12x gives 21.60.",
                    "Baseline: 2.00 earnings at 15x gives 30.00.",
                    "Optimistic: 2.30 earnings at 18x gives 41.40.",
                    "At a price of 24, the stock sits near the conservative end with a thin margin of safety.",
                ],
            )
        ],
        research_tasks=[
            ResearchTask(
                title="Label three opportunities",
                instructions="Classify three companies as fair, high, or low priced and write the assumptions behind each label.",
                sources=["Annual reports", "Consensus estimates from public summaries", "Historical price data"],
            )
        ],
        checkpoint=[
            CheckpointQuestion(
                prompt="Why build conservative, baseline, and optimistic cases?",
                options=[
                    "To find the single correct price.",
                    "To see how value shifts as key assumptions change.",
                    "To justify buying at any price.",
                ],
                correct_index=1,
                explanation="Scenarios expose which assumptions drive value and how wide the range is.",
            ),
            CheckpointQuestion(
                prompt="Value range is 40-60 and the price is 35. What is the margin of safety against the conservative case?",
                options=["5", "12.5%", "25"],
                correct_index=1,
                explanation="(40 - 35) / 40 = 12.5%, measured against the conservative value.",
            ),
            CheckpointQuestion(
                prompt="Which assumption note is most useful when you revisit a valuation?",
                options=[
                    "Margins expand from 8% to 10% as the new plant reaches full capacity in two years.",
                    "The company looks strong.",
                    "Analysts are positive.",
                ],
                correct_index=0,
                explanation="Specific, testable assumptions can be checked against later results.",
            ),
        ],
    ),
}


def authored_pack(lesson_id: str) -> Optional[TrainingPack]:
    return AUTHORED_PACKS.get(lesson_id)


def training_pack_for(lesson: Lesson) -> TrainingPack:
    """Return the authored pack for the lesson, or a generated fallback."""
    pack = AUTHORED_PACKS.get(lesson.id)
    if pack is not None:
        return pack
    return build_fallback_pack(lesson)


__all__ = [
    "AUTHORED_PACKS",
    "CheckpointQuestion",
    "FrameworkCard",
    "MAX_FALLBACK_QUESTIONS",
    "ResearchTask",
    "TrainingPack",
    "WorkedExample",
    "authored_pack",
    "build_fallback_pack",
    "training_pack_for",
]
