"""
CommunityOS Bot - Agent Personas
Maps channels to agent personas and builds their system prompts.
"""

import random
import re
import time
from typing import Callable, Dict, List, Optional

from config import PERSONAS_FILE, ORG_FILE
from constants import PERSONA_CACHE_TTL
from models import AgentId
from storage import load_json

A = AgentId

# Channel name -> agent that answers there
CHANNEL_AGENT_MAP: Dict[str, AgentId] = {
    # Welcome & General
    "welcome": A.MAIN,
    "general": A.MAIN,
    "introductions": A.COMMUNITY_MANAGER,
    "announcements": A.CHIEF_OF_STAFF,
    "rules": A.SECURITY_GOVERNANCE,
    # CommunityOS
    "communityos-general": A.MAIN,
    "communityos-announcements": A.CHIEF_OF_STAFF,
    "support": A.SUPPORT_SHERIFF,
    "support-tickets": A.SUPPORT_LEAD,
    # BIM
    "bim-general": A.BIM_CEO,
    "bim-projects": A.BIM_PRODUCT_LEAD,
    "bim-showcase": A.BIM_COMMUNITY_MGR,
    # Streaming
    "streaming-general": A.STREAMING_CEO,
    "live-chat": A.CHAT_HOST,
    "stream-chat": A.CHAT_HOST,
    "stream-schedule": A.STREAM_COORDINATOR,
    "stream-topics": A.CONTENT_DIRECTOR,
    "stream-clips": A.HIGHLIGHT_EDITOR,
    "stream-feedback": A.ENGAGEMENT_ANALYST,
    "clips": A.SOCIAL_CLIPPER,
    # Agent Corner
    "agent-logs": A.OPS,
    "agent-chat": A.MAIN,
    "agent-general": A.MAIN,
    "swarm-activity": A.COORDINATOR,
    "agent-reports": A.CHIEF_OF_STAFF,
    # Build Zone
    "ship-log": A.RELEASE_MANAGER,
    "build-swarm": A.CODER,
    "bug-reports": A.QA_GUARDIAN,
    "feature-requests": A.PRODUCT_MANAGER,
    "dev-chat": A.CODER,
    "platform-eng": A.CODER,
    # Knowledge Base
    "kb-search": A.DOCS_LIBRARIAN,
    "kb-updates": A.DOCS_LIBRARIAN,
    "kb-discussions": A.RESEARCHER,
    "kb-chat": A.DOCS_LIBRARIAN,
    # Content
    "content-ideas": A.CONTENT_CREATOR,
    "social-media": A.GROWTH_MARKETER,
    "ideas": A.CONTENT_CREATOR,
    # Team channels
    "core-ops": A.MAIN,
    "ops-support": A.INCIDENT_MANAGER,
    "product-design": A.PRODUCT_MANAGER,
    "knowledge": A.DOCS_LIBRARIAN,
    "growth-team": A.GROWTH_MARKETER,
    "support-team": A.SUPPORT_LEAD,
    "security-finance": A.FINANCE_CLERK,
    "creator-ops": A.CAREER_AGENT,
    "data-team": A.DATA_ANALYST,
    "automation-team": A.AUTOMATION_EXPERT,
    "personal-services": A.LIFE_ASSISTANT,
    # BIM teams
    "bim-leadership": A.BIM_CEO,
    "bim-product": A.BIM_PRODUCT_LEAD,
    "bim-engineering": A.BIM_TECH_LEAD,
    "bim-growth": A.BIM_GROWTH_LEAD,
    "bim-operations": A.BIM_OPS_LEAD,
    "bim-ops-support": A.BIM_INCIDENT_MANAGER,
    # Streaming teams
    "streaming-leadership": A.STREAMING_CEO,
    "stream-production": A.STREAM_PRODUCER,
    "content-team": A.CONTENT_DIRECTOR,
    "audience-team": A.STREAMING_COMMUNITY_LEAD,
    "social-team": A.CHAT_HOST,
    "stream-ops": A.STREAM_INCIDENT_MANAGER,
    "content-streamers": A.ARIA,
    # Logs
    "member-log": A.COMMUNITY_MANAGER,
    "status": A.OPS,
    "moderation-log": A.SECURITY_GOVERNANCE,
}

AGENT_EMOJI: Dict[AgentId, str] = {
    A.MAIN: "🎯",
    A.CHIEF_OF_STAFF: "👑",
    A.CODER: "💻",
    A.QA_GUARDIAN: "🛡️",
    A.PRODUCT_MANAGER: "📋",
    A.DOCS_LIBRARIAN: "📚",
    A.RESEARCHER: "🔍",
    A.WRITER: "📝",
    A.GROWTH_MARKETER: "📈",
    A.SALES_ENGINE: "🤝",
    A.SUPPORT_SHERIFF: "⭐",
    A.SUPPORT_LEAD: "🎧",
    A.CAREER_AGENT: "💼",
    A.DEMO_PRODUCER: "🎬",
    A.SECURITY_GOVERNANCE: "🔒",
    A.FINANCE_CLERK: "💸",
    A.OPS: "⚙️",
    A.RELEASE_MANAGER: "🚀",
    A.AUTOMATION_ENGINEER: "🤖",
    A.UX_FRIEND: "🎨",
    A.COMMUNITY_MANAGER: "🧑‍🤝‍🧑",
    A.CONTENT_CREATOR: "✨",
    A.STREAMING_CEO: "🎥",
    A.STREAM_PRODUCER: "🔴",
    A.CHAT_HOST: "🎤",
    A.BIM_CEO: "👑",
    A.DATA_ANALYST: "📊",
    A.INCIDENT_MANAGER: "🚨",
    A.COORDINATOR: "🔗",
    A.ARIA: "🔮",
    A.BLAZE: "🔥",
    A.KIRA: "🧠",
    A.MYLA: "🌙",
    A.TRIX: "🤪",
}

GREETINGS: Dict[AgentId, List[str]] = {
    A.MAIN: [
        "Hey! Paco here. What can I help you with today?",
        "Paco reporting in. Ready to coordinate and ship.",
        "What's up? Let's turn ideas into outcomes.",
    ],
    A.CODER: [
        "Coder Prime here. What are we building?",
        "Ready to write some clean code. What are we building?",
        "Let's solve this problem. Show me what you're working with.",
    ],
    A.SUPPORT_SHERIFF: [
        "Support Sheriff here. How can I help you today?",
        "I'm here to help resolve your issue. What's going on?",
        "Let's get you unblocked. What seems to be the problem?",
    ],
    A.DOCS_LIBRARIAN: [
        "Docs Librarian here. Looking for something in the knowledge base?",
        "Let me help you find what you need. What topic?",
        "I can point you to the right documentation. What are you looking for?",
    ],
    A.PRODUCT_MANAGER: [
        "Product Manager here. Let's talk about features and priorities.",
        "What user problem are we solving today?",
        "Ready to scope and ship. What's the requirement?",
    ],
    A.GROWTH_MARKETER: [
        "Growth Marketer here. Let's make it spread!",
        "What experiment are we running today?",
        "Ready to find the right audience. What's the message?",
    ],
    A.CHAT_HOST: [
        "Hey! Chat Host here. Welcome to the stream chat!",
        "Great to have you here! What's on your mind?",
        "The vibe is good! Let's chat.",
    ],
    A.STREAMING_CEO: [
        "STEFANO here. Ready to produce some amazing content!",
        "Let's make this stream legendary. What's the plan?",
        "Content is king. What story are we telling today?",
    ],
    A.BIM_CEO: [
        "MAXIMUS here. Believe it, make it, ship it!",
        "Ready to empower creators. What's the vision?",
        "Let's build something amazing together.",
    ],
    A.CHIEF_OF_STAFF: [
        "MUFASA here. Let's align on priorities.",
        "Chief of Staff reporting. What needs coordination?",
        "Ready to turn strategy into action. What's the goal?",
    ],
}

# Keyword found in a message -> agent better suited to it (first match wins)
TOPIC_AGENT_MAP = [
    ("code", A.CODER),
    ("programming", A.CODER),
    ("bug", A.QA_GUARDIAN),
    ("test", A.QA_GUARDIAN),
    ("documentation", A.DOCS_LIBRARIAN),
    ("docs", A.DOCS_LIBRARIAN),
    ("feature", A.PRODUCT_MANAGER),
    ("product", A.PRODUCT_MANAGER),
    ("design", A.UX_FRIEND),
    ("ux", A.UX_FRIEND),
    ("marketing", A.GROWTH_MARKETER),
    ("growth", A.GROWTH_MARKETER),
    ("support", A.SUPPORT_SHERIFF),
    ("help", A.SUPPORT_SHERIFF),
    ("career", A.CAREER_AGENT),
    ("resume", A.CAREER_AGENT),
    ("stream", A.STREAMING_CEO),
    ("content", A.CONTENT_CREATOR),
    ("security", A.SECURITY_GOVERNANCE),
    ("finance", A.FINANCE_CLERK),
    ("automation", A.AUTOMATION_ENGINEER),
    ("workflow", A.AUTOMATION_EXPERT),
    ("data", A.DATA_ANALYST),
    ("analytics", A.DATA_ANALYST),
]


def normalize_channel_name(channel_name: str) -> str:
    return re.sub(r'[^a-z0-9-]', '-', channel_name.lower())


def get_agent_emoji(agent_id: AgentId) -> str:
    return AGENT_EMOJI.get(agent_id, "🤖")


def suggest_agent_for_topic(text: str) -> AgentId:
    """Pick the specialist whose keyword appears first in the map."""
    text_lower = text.lower()
    for keyword, agent_id in TOPIC_AGENT_MAP:
        if keyword in text_lower:
            return agent_id
    return A.MAIN


class Persona:
    """A named response profile for one agent."""

    def __init__(
        self,
        agent_id: AgentId,
        display_name: str,
        tagline: str = "",
        personality: List[str] = None,
        communication_style: str = "",
        strengths: List[str] = None,
    ):
        self.agent_id = agent_id
        self.display_name = display_name
        self.tagline = tagline
        self.personality = personality or []
        self.communication_style = communication_style
        self.strengths = strengths or []

    @classmethod
    def from_dict(cls, agent_id: AgentId, data: dict) -> "Persona":
        return cls(
            agent_id=agent_id,
            display_name=data.get("displayName") or default_display_name(agent_id),
            tagline=data.get("tagline", ""),
            personality=data.get("personality") or [],
            communication_style=data.get("communicationStyle", ""),
            strengths=data.get("strengths") or [],
        )

    def to_dict(self) -> dict:
        return {
            "agentId": self.agent_id.value,
            "displayName": self.display_name,
            "tagline": self.tagline,
            "personality": self.personality,
            "communicationStyle": self.communication_style,
            "strengths": self.strengths,
        }

    def __repr__(self):
        return f"<Persona {self.agent_id.value} {self.display_name!r}>"


DEFAULT_PERSONA = Persona(
    agent_id=A.MAIN,
    display_name="Paco",
    tagline="Your calm operator: turns messy asks into shipped outcomes.",
    personality=["decisive", "warm", "systems-minded"],
    communication_style="Concise, action-first summaries with explicit next steps and safety checks.",
    strengths=["orchestration", "fast triage", "end-to-end delivery"],
)


def default_display_name(agent_id: AgentId) -> str:
    if agent_id is A.MAIN:
        return DEFAULT_PERSONA.display_name
    return " ".join(part.capitalize() for part in agent_id.value.split("-"))


class PersonaManager:
    """Resolves channel personas, reading optional persona/org files with a short TTL."""

    def __init__(
        self,
        chatbot_config=None,
        personas_file: str = PERSONAS_FILE,
        org_file: str = ORG_FILE,
        cache_ttl: float = PERSONA_CACHE_TTL,
        rng: random.Random = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.chatbot_config = chatbot_config
        self.personas_file = personas_file
        self.org_file = org_file
        self.cache_ttl = cache_ttl
        self.rng = rng or random.Random()
        self._clock = clock
        self.channel_map: Dict[str, AgentId] = dict(CHANNEL_AGENT_MAP)
        self._personas: Optional[dict] = None
        self._org: Optional[dict] = None
        self._loaded_at = 0.0

    # --- File data ---

    def _refresh(self):
        now = self._clock()
        if self._personas is not None and now - self._loaded_at < self.cache_ttl:
            return
        data = load_json(self.personas_file)
        personas = data.get("personas") if isinstance(data, dict) else None
        self._personas = personas if isinstance(personas, dict) else {}
        org = load_json(self.org_file)
        self._org = org if isinstance(org, dict) else {}
        self._loaded_at = now

    def get_agent_skills(self, agent_id: AgentId) -> List[str]:
        self._refresh()
        return (self._org.get("agentSkills") or {}).get(agent_id.value, [])

    def get_agent_team(self, agent_id: AgentId) -> Optional[dict]:
        self._refresh()
        teams = self._org.get("teams") or []
        sections = {s.get("id"): s for s in self._org.get("sections") or []}
        for team in teams:
            if agent_id.value in team.get("agents", []):
                section = sections.get(team.get("sectionId"), {})
                return {
                    "teamId": team.get("id"),
                    "teamName": team.get("name"),
                    "sectionId": section.get("id"),
                    "sectionName": section.get("name"),
                    "isLead": team.get("lead") == agent_id.value,
                }
        return None

    # --- Personas ---

    def get_channel_agent(self, channel_name: str) -> AgentId:
        return self.channel_map.get(normalize_channel_name(channel_name), A.MAIN)

    def assign_agent_to_channel(self, channel_name: str, agent_id: AgentId):
        """Runtime-only override of the channel map."""
        self.channel_map[normalize_channel_name(channel_name)] = agent_id

    def get_agent_persona(self, agent_id: AgentId) -> Persona:
        self._refresh()
        data = self._personas.get(agent_id.value)
        if data:
            return Persona.from_dict(agent_id, data)
        if agent_id is A.MAIN:
            return DEFAULT_PERSONA
        return Persona(agent_id, default_display_name(agent_id))

    def get_channel_persona(self, channel_name: str) -> Persona:
        return self.get_agent_persona(self.get_channel_agent(channel_name))

    def list_channel_agents(self) -> List[dict]:
        return [
            {
                "channel": channel,
                "agentId": agent_id.value,
                "displayName": self.get_agent_persona(agent_id).display_name,
            }
            for channel, agent_id in self.channel_map.items()
        ]

    def system_prompt(self, channel_name: str, channel_topic: str = "", agent_id: Optional[AgentId] = None) -> str:
        """Build the persona prompt for a channel, or for agent_id when one is asked directly."""
        if agent_id is not None:
            persona = self.get_agent_persona(agent_id)
        else:
            persona = self.get_channel_persona(channel_name)
        skills = self.get_agent_skills(persona.agent_id)
        team = self.get_agent_team(persona.agent_id)

        parts = [
            f"You are {persona.display_name}, an AI agent in the CommunityOS Discord server.",
            "",
            "## Your Identity",
            f'- Tagline: "{persona.tagline}"' if persona.tagline else "",
            f"- Personality traits: {', '.join(persona.personality) or 'helpful, professional'}",
            f"- Communication style: {persona.communication_style or 'Clear and helpful'}",
            f"- Strengths: {', '.join(persona.strengths) or 'general assistance'}",
            "",
            "## Your Channel",
            f"- You are the designated agent for #{channel_name}" if agent_id is None
            else f"- You were asked directly from #{channel_name}",
            f"- Channel purpose: {channel_topic}" if channel_topic else "",
        ]
        if self.chatbot_config is not None:
            parts.append(f"- Tone: {self.chatbot_config.get_channel_behavior(channel_name)}")
            parts.append(f"- Style dials (0-1): {self._personality_line()}")

        parts += [
            "",
            "## Your Skills",
            f"- {', '.join(skills)}" if skills else "- General assistance",
            "",
        ]

        if team:
            parts += [
                "## Your Team",
                f"- Team: {team['teamName']}",
                f"- Section: {team['sectionName']}",
                "- You are the team lead" if team["isLead"] else "",
                "",
            ]

        parts += [
            "## Guidelines",
            f"- Stay in character as {persona.display_name}",
            "- Be helpful but concise",
            "- Use your expertise to provide relevant answers",
            "- If a question is outside your domain, suggest the appropriate agent",
            "- Never pretend to have capabilities you don't have",
            "- Use Discord formatting (bold, code blocks) when appropriate",
            "- Remember context from the conversation",
        ]

        return "\n".join(p for p in parts if p != "")

    def _personality_line(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.chatbot_config.personality.items())

    def greeting(self, channel_name: str) -> str:
        persona = self.get_channel_persona(channel_name)
        options = GREETINGS.get(persona.agent_id) or [
            f"{persona.display_name} here. How can I help?",
            f"Hey! {persona.display_name} reporting in.",
            "What can I assist you with today?",
        ]
        return self.rng.choice(options)
