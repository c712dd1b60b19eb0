from pydantic import BaseModel
from typing import List


class ProcessRequest(BaseModel):
    """Raw model output plus the prompt that produced it"""
    raw_output: str
    prompt: str = ""


class XmlRequest(BaseModel):
    xml: str


class ProjectRequest(BaseModel):
    xml: str
    target: str = "mermaid"  # native | mermaid | plantuml | d2


class ScoreRequest(BaseModel):
    xml: str
    prompt: str = ""


class FileInput(BaseModel):
    name: str
    content: str


class InitialPromptRequest(BaseModel):
    files: List[FileInput] = []
    additional_context: str = ""


class FollowUpPromptRequest(BaseModel):
    follow_up: str
