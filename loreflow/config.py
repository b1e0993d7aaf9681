"""
LoreFlow Configuration module.

This module provides the configuration classes for the LoreFlow system. The
defaults reproduce the scoring, learning and seeding constants the engine is
calibrated against; change them only when tuning a whole world.
"""

from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any


@dataclass
class ResolverConfig:
    """Entity resolver configuration settings."""
    exact_id_score: int = 100
    primary_alias_score: int = 90
    qualified_alias_score: int = 80
    display_exact_score: int = 70
    display_substring_score: int = 20
    ambiguous_alias_score: int = 30
    belief_bonus: int = 25
    location_bonus: int = 20
    recent_subject_bonus: int = 15
    focus_bonus: int = 30
    specific_concept_bonus: int = 10
    generic_concept_penalty: int = 5
    ambiguity_gap: int = 20
    recent_subjects_limit: int = 5


@dataclass
class LearningConfig:
    """Learning system configuration settings."""
    hearsay_decay: float = 0.7
    learn_threshold: float = 0.1
    reinforce_fraction: float = 0.2
    default_trust: float = 0.5
    witness_strength: float = 1.0
    decay_rate: float = 0.01
    forget_below: float = 0.0


@dataclass
class SeederConfig:
    """Knowledge seeder configuration settings."""
    depth_decay: float = 0.8


@dataclass
class MatchingConfig:
    """Fuzzy tag/content matching configuration settings."""
    min_word_length: int = 3
    short_word_length: int = 5
    strict_edit_distance: int = 1
    loose_edit_distance: int = 2


_SECTIONS = {
    "resolver": ResolverConfig,
    "learning": LearningConfig,
    "seeder": SeederConfig,
    "matching": MatchingConfig,
}


@dataclass
class LoreFlowConfig:
    """Configuration for LoreFlow."""

    # Configuration sections
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    learning: LearningConfig = field(default_factory=LearningConfig)
    seeder: SeederConfig = field(default_factory=SeederConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)

    # Agents without a seed entry get an empty belief store instead of failing
    allow_empty_beliefs: bool = False

    # Debug and logging settings
    verbose_logging: bool = False

    # Optional custom configuration
    custom_config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'LoreFlowConfig':
        """
        Create configuration from a flat dictionary.

        Keys are matched against the fields of every section; unknown keys
        are ignored.

        Args:
            config_dict: Configuration dictionary

        Returns:
            LoreFlowConfig instance
        """
        top_config_dict = {
            "allow_empty_beliefs": config_dict.get("allow_empty_beliefs", False),
            "verbose_logging": config_dict.get("verbose_logging", False),
            "custom_config": config_dict.get("custom_config", {}),
        }

        for section_name, section_cls in _SECTIONS.items():
            names = [f.name for f in fields(section_cls)]
            section_dict = {k: v for k, v in config_dict.items() if k in names}
            if section_dict:
                top_config_dict[section_name] = section_cls(**section_dict)

        return cls(**top_config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a flat dictionary.

        Returns:
            Dictionary representation of configuration
        """
        config_dict: Dict[str, Any] = {}
        for section_name in _SECTIONS:
            section = getattr(self, section_name)
            for f in fields(section):
                config_dict[f.name] = getattr(section, f.name)

        config_dict.update({
            "allow_empty_beliefs": self.allow_empty_beliefs,
            "verbose_logging": self.verbose_logging,
            "custom_config": self.custom_config,
        })
        return config_dict


class ConfigBuilder:
    """Builder class for LoreFlowConfig to allow fluent configuration."""

    def __init__(self):
        self._resolver = ResolverConfig()
        self._learning = LearningConfig()
        self._seeder = SeederConfig()
        self._matching = MatchingConfig()
        self._allow_empty_beliefs = False
        self._verbose_logging = False
        self._custom_config = {}

    @staticmethod
    def _apply(section, kwargs: Dict[str, Any]):
        names = {f.name for f in fields(section)}
        for key, value in kwargs.items():
            if key not in names:
                raise ValueError(f"Unknown {type(section).__name__} setting: {key}")
            setattr(section, key, value)

    def with_resolver(self, **kwargs) -> 'ConfigBuilder':
        """Configure entity resolver settings."""
        self._apply(self._resolver, kwargs)
        return self

    def with_learning(self, **kwargs) -> 'ConfigBuilder':
        """Configure learning system settings."""
        self._apply(self._learning, kwargs)
        return self

    def with_seeder(self, **kwargs) -> 'ConfigBuilder':
        """Configure knowledge seeder settings."""
        self._apply(self._seeder, kwargs)
        return self

    def with_matching(self, **kwargs) -> 'ConfigBuilder':
        """Configure fuzzy matching settings."""
        self._apply(self._matching, kwargs)
        return self

    def with_empty_beliefs(self, allow: bool = True) -> 'ConfigBuilder':
        """Allow agents without a seed entry to start with no beliefs."""
        self._allow_empty_beliefs = allow
        return self

    def with_debug(self, verbose_logging: Optional[bool] = None) -> 'ConfigBuilder':
        """Configure debug and logging settings."""
        if verbose_logging is not None:
            self._verbose_logging = verbose_logging
        return self

    def with_custom_config(self, custom_config: Dict[str, Any]) -> 'ConfigBuilder':
        """Configure custom settings."""
        self._custom_config = custom_config
        return self

    def build(self) -> LoreFlowConfig:
        """Build the final configuration object."""
        return LoreFlowConfig(
            resolver=self._resolver,
            learning=self._learning,
            seeder=self._seeder,
            matching=self._matching,
            allow_empty_beliefs=self._allow_empty_beliefs,
            verbose_logging=self._verbose_logging,
            custom_config=self._custom_config,
        )
