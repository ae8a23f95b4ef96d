"""Profile lookup tool: schema, allow-list and argument decoding."""

import json
from dataclasses import dataclass
from typing import Annotated, Any, Iterable, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..facts import FactLookup, FactStore

PROFILE_TOOL_NAME = "get_profile_info"

PROFILE_KEY_PATHS: tuple[str, ...] = (
    "name",
    "current_date",
    "email",
    "age",
    "date_of_birth",
    "phone_number",
    "pronouns",
    "personality",
    "address",
    "family",
    "hometown",
    "languages",
    "sexual_orientation",
    "dating",
    "religion",
    "zodiac_sign",
    "education.k-12",
    "education.undergraduate",
    "education.graduate",
    "professional_experience",
    "work_authorization",
    "career_goals",
    "favorite.food",
    "favorite.movie",
    "favorite.tv_series",
    "favorite.song",
    "favorite.artist",
    "favorite.color",
    "favorite.number",
    "favorite.sport",
    "favorite.sport_team",
    "favorite.person",
    "favorite.fictional_character",
    "favorite.quote",
    "favorite.creator",
    "technical_skills",
    "projects",
    "hobbies",
    "places_visited",
    "study_method",
    "preferred_work_style",
    "define_success",
    "politics",
    "links.resume",
    "links.transcript.undergraduate",
    "links.transcript.graduate",
    "links.internship_completion_certificate",
    "links.github",
    "links.linkedin",
    "links.google_scholar",
    "diet",
    "travel_bucket_list",
    "summary_about_me",
)


class _ProfileToolArgs(BaseModel):
    """Wire shape of the tool arguments."""

    model_config = ConfigDict(extra="forbid", strict=True)

    key_path: str | None = None
    key_paths: Annotated[list[str], Field(min_length=1)] | None = None


@dataclass(frozen=True)
class ValidToolArgs:
    """Decoded arguments: unique allow-listed key paths in request order."""

    key_paths: tuple[str, ...]


@dataclass(frozen=True)
class InvalidToolArgs:
    """Arguments that must not be acted on."""

    reason: str


ParsedToolArgs = Union[ValidToolArgs, InvalidToolArgs]


class ProfileTool:
    """The single tool the model may call to read profile facts."""

    def __init__(
        self,
        subject_name: str,
        key_paths: Iterable[str] = PROFILE_KEY_PATHS,
    ) -> None:
        self.subject_name = subject_name
        self._key_paths = tuple(key_paths)
        self._allowed = frozenset(self._key_paths)

    @property
    def name(self) -> str:
        return PROFILE_TOOL_NAME

    @property
    def key_paths(self) -> tuple[str, ...]:
        return self._key_paths

    @property
    def description(self) -> str:
        return (
            f"Fetch one or more facts about {self.subject_name} from the local "
            "profile JSON by key path. Strictly only use the available keys: "
            f"{', '.join(self._key_paths)}."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for the tool parameters."""
        return {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "key_path": {
                    "type": "string",
                    "description": "Key path in the profile JSON.",
                    "enum": list(self._key_paths),
                },
                "key_paths": {
                    "type": "array",
                    "minItems": 1,
                    "items": {"type": "string", "enum": list(self._key_paths)},
                    "description": "Multiple key paths in the profile JSON to be fetched.",
                },
            },
            "anyOf": [{"required": ["key_path"]}, {"required": ["key_paths"]}],
        }

    def get_schema(self) -> dict[str, Any]:
        """Get tool schema for LLM function calling."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def forced_choice(self) -> dict[str, Any]:
        """tool_choice value that obliges the model to call this tool."""
        return {"type": "function", "function": {"name": self.name}}

    def is_allowed(self, key_path: str) -> bool:
        return key_path in self._allowed

    def parse_arguments(self, raw_arguments: str | None) -> ParsedToolArgs:
        """Decode the model's raw argument string.

        Returns ValidToolArgs only when the JSON matches the schema, at
        least one non-blank path was requested, and every path is on the
        allow-list.
        """
        if raw_arguments is not None and not isinstance(raw_arguments, str):
            return InvalidToolArgs(reason="Arguments are not a JSON string")
        try:
            args = _ProfileToolArgs.model_validate_json(raw_arguments or "{}")
        except ValidationError as e:
            return InvalidToolArgs(reason=f"Malformed arguments: {e.error_count()} error(s)")

        requested: list[str] = []
        if args.key_path is not None:
            requested.append(args.key_path)
        if args.key_paths is not None:
            requested.extend(args.key_paths)

        key_paths = [path.strip() for path in requested if path.strip()]
        if not key_paths:
            return InvalidToolArgs(reason="No key paths requested")

        disallowed = [path for path in key_paths if not self.is_allowed(path)]
        if disallowed:
            return InvalidToolArgs(reason=f"Key paths not allowed: {', '.join(disallowed)}")

        return ValidToolArgs(key_paths=tuple(dict.fromkeys(key_paths)))

    def lookup(self, store: FactStore, args: ValidToolArgs) -> list[FactLookup]:
        """Resolve every requested path against the fact store."""
        return [store.resolve(path) for path in args.key_paths]

    @staticmethod
    def format_results(results: list[FactLookup]) -> str:
        """Encode lookups as the tool message content."""
        return json.dumps(
            {"results": [result.to_dict() for result in results]},
            ensure_ascii=False,
        )
