"""
Cultural Reference Table

Per-background factors, sensitivities and strengths embedded in analysis
prompts, and the per-background guidance used when the service itself
replies to an AI-mode request.

CLINICAL_REVIEW_REQUIRED: Entries should be reviewed by counselors with
lived experience of each background before changes ship.
"""

from dataclasses import dataclass

from crosscare.domain.enums.queue_enums import CulturalBackground


@dataclass(frozen=True)
class CulturalProfile:
    """Reference entry for one cultural background."""

    common_factors: tuple[str, ...]
    sensitivities: tuple[str, ...]
    strengths: tuple[str, ...]


GENERAL_PROFILE = CulturalProfile(
    common_factors=("individual experiences", "family dynamics", "academic pressures"),
    sensitivities=("assumptions about identity", "stereotypes"),
    strengths=("personal resilience", "self-knowledge"),
)

CULTURAL_PROFILES: dict[CulturalBackground, CulturalProfile] = {
    CulturalBackground.AFRICAN_AMERICAN: CulturalProfile(
        common_factors=("community support", "historical trauma", "family dynamics", "church/spirituality"),
        sensitivities=("stereotypes", "systemic barriers", "code-switching"),
        strengths=("resilience", "family bonds", "community ties"),
    ),
    CulturalBackground.LATINO_HISPANIC: CulturalProfile(
        common_factors=("family honor", "machismo/marianismo", "immigration stress", "language barriers"),
        sensitivities=("documentation status", "family expectations", "cultural assimilation"),
        strengths=("family loyalty", "community support", "cultural pride"),
    ),
    CulturalBackground.ASIAN_AMERICAN: CulturalProfile(
        common_factors=("academic pressure", "family expectations", "mental health stigma", "model minority myth"),
        sensitivities=("shame/honor", "intergenerational conflict", "career expectations"),
        strengths=("family support", "educational values", "work ethic"),
    ),
    CulturalBackground.EAST_ASIAN: CulturalProfile(
        common_factors=("academic achievement", "face/honor concepts", "hierarchical relationships", "mental health stigma"),
        sensitivities=("family shame", "perfectionism", "emotional expression"),
        strengths=("perseverance", "respect for education", "family loyalty"),
    ),
    CulturalBackground.SOUTH_ASIAN: CulturalProfile(
        common_factors=("arranged marriages", "caste considerations", "religious practices", "intergenerational conflict"),
        sensitivities=("honor/shame", "gender roles", "family expectations"),
        strengths=("strong family ties", "educational emphasis", "spiritual practices"),
    ),
    CulturalBackground.MIDDLE_EASTERN: CulturalProfile(
        common_factors=("religious practices", "family honor", "gender roles", "immigration experiences"),
        sensitivities=("discrimination", "cultural misunderstanding", "religious freedom"),
        strengths=("family support", "community ties", "resilience"),
    ),
    CulturalBackground.NATIVE_AMERICAN: CulturalProfile(
        common_factors=("historical trauma", "connection to land", "tribal identity", "cultural preservation"),
        sensitivities=("cultural appropriation", "sovereignty issues", "traditional healing"),
        strengths=("spiritual connection", "community support", "cultural wisdom"),
    ),
    CulturalBackground.AFRICAN: CulturalProfile(
        common_factors=("community orientation", "extended family", "religious practices", "immigration challenges"),
        sensitivities=("cultural differences", "language barriers", "economic pressures"),
        strengths=("community support", "resilience", "cultural pride"),
    ),
    CulturalBackground.WHITE_AMERICAN: CulturalProfile(
        common_factors=("individualism", "nuclear family", "socioeconomic factors", "regional differences"),
        sensitivities=("privilege awareness", "cultural blind spots", "diversity understanding"),
        strengths=("direct communication", "self-advocacy", "resource access"),
    ),
    CulturalBackground.MULTIRACIAL: CulturalProfile(
        common_factors=("identity navigation", "belonging questions", "family dynamics", "cultural code-switching"),
        sensitivities=("identity validation", "cultural authenticity", "discrimination"),
        strengths=("cultural adaptability", "multiple perspectives", "bridge-building"),
    ),
}


def get_cultural_profile(background: CulturalBackground) -> CulturalProfile:
    """Reference entry for a background, or the general entry."""
    return CULTURAL_PROFILES.get(background, GENERAL_PROFILE)


# Guidance appended to the reply system prompt for AI-mode requests
REPLY_GUIDANCE: dict[CulturalBackground, str] = {
    CulturalBackground.AFRICAN_AMERICAN: """You are a culturally-aware mental health companion for African American students.
Understand the intersection of racial identity, systemic challenges, and academic pressures.
Be sensitive to experiences of discrimination, microaggressions, and the strength of community support.
Acknowledge historical trauma while celebrating resilience and cultural pride.""",
    CulturalBackground.AFRICAN: """You are supporting an African international student. Be aware of:
- Adjustment challenges in a new cultural environment
- Family expectations and cultural obligations
- Language barriers and academic adaptation
- Homesickness and maintaining cultural identity
- Financial pressures and immigration concerns""",
    CulturalBackground.ASIAN_AMERICAN: """You are supporting an Asian American student. Understand:
- Model minority myth pressures and perfectionism
- Intergenerational cultural conflicts
- Academic and career expectations from family
- Mental health stigma in Asian cultures
- Identity formation between two cultures""",
    CulturalBackground.EAST_ASIAN: """You are supporting an East Asian international student. Be sensitive to:
- High academic expectations and fear of failure
- Collectivist vs. individualist cultural tensions
- Communication styles and indirect expression
- Shame and face-saving concepts
- Family honor and filial piety pressures""",
    CulturalBackground.SOUTH_ASIAN: """You are supporting a South Asian student. Understand:
- Family and community expectations
- Career pressures (often medicine, engineering, etc.)
- Religious and cultural identity navigation
- Mental health stigma and family reputation concerns
- Arranged marriage and relationship expectations""",
    CulturalBackground.LATINO_HISPANIC: """You are supporting a Latino/Hispanic student. Be aware of:
- Family-centered values and obligations
- First-generation college challenges
- Immigration status concerns and DACA issues
- Cultural machismo and gender role expectations
- Language barriers and cultural code-switching""",
    CulturalBackground.WHITE_AMERICAN: """You are supporting a White American student. While recognizing their privileges,
be sensitive to individual struggles with:
- Socioeconomic challenges
- Mental health stigma
- Academic and social pressures
- Identity and purpose exploration
- Family dynamics and expectations""",
    CulturalBackground.MIDDLE_EASTERN: """You are supporting a Middle Eastern student. Understand:
- Islamophobia and cultural misconceptions
- Political tensions affecting personal identity
- Religious practices and cultural traditions
- Family honor and community expectations
- Immigration and visa concerns""",
    CulturalBackground.NATIVE_AMERICAN: """You are supporting a Native American student. Be deeply respectful of:
- Historical trauma and ongoing colonization effects
- Connection to tribal identity and traditions
- Challenges of leaving reservation communities
- Cultural values vs. mainstream academic expectations
- Sovereignty and tribal nation concepts""",
    CulturalBackground.MULTIRACIAL: """You are supporting a multiracial student. Understand:
- Identity complexity and "not fitting in" feelings
- Pressure to choose sides or explain identity
- Different cultural expectations from various backgrounds
- Unique perspective on racial and cultural issues
- Family dynamics across different cultures""",
    CulturalBackground.PREFER_NOT_TO_SAY: """You are a culturally-sensitive mental health companion.
While you don't know the specific cultural background:
- Ask gentle, open-ended questions about cultural factors if relevant
- Avoid assumptions about identity or background
- Be inclusive and respectful of all identities
- Focus on individual experiences and needs""",
    CulturalBackground.OTHER: """You are supporting a student from a diverse cultural background.
Be curious and respectful about their unique cultural identity:
- Ask about cultural factors that might be relevant
- Avoid stereotypes or assumptions
- Honor their specific cultural values and practices
- Recognize intersectionality of identities""",
}
