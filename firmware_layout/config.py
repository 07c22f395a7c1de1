"""Module containing configuration settings for parsing firmware descriptors."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from firmware_layout.inference import SPLIT_NAME_FRAGMENTS


class ParseConfig(BaseSettings):
    """Configuration settings related to parsing firmware descriptors into keyboard models."""

    model_config = SettingsConfigDict(env_prefix="FIRMWARE_LAYOUT_", extra="ignore")

    # run C preprocessor on ZMK keymaps before reading their node structure
    preprocess: bool = True

    # substrings of layout and keyboard names that identify well-known split keyboards
    split_name_fragments: list[str] = list(SPLIT_NAME_FRAGMENTS)

    # name of the single placeholder layer produced for binary firmware images
    binary_layer_name: str = "base"
