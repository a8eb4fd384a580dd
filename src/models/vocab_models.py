"""
Pydantic models for the vocabulary notebook
Define schemas for words, word groups and the request bodies that write them
"""
from typing import List, Optional, Union
from pydantic import BaseModel, Field, field_validator

from utils.identifiers import generate_id


WORD_TEXT_FIELDS = ("term", "meaningCn", "meaningEn", "meaningJp", "meaningJpReading")

# Fields a client may overlay on an existing group
GROUP_WRITABLE_FIELDS = ("title", "createdAt", "passed", "words", "imageUrl", "imageUrls", "lastScore")

GROUP_SIZE = 10
DEFAULT_GROUP_TITLE = "New Day"


# ============= WORD MODELS =============

class Word(BaseModel):
    """A single vocabulary entry: a term and three parallel glosses"""
    id: str = Field(default_factory=generate_id, description="Unique within its group")
    term: str = Field(default="", description="Target-language word")
    meaningCn: str = Field(default="", description="Chinese gloss")
    meaningEn: str = Field(default="", description="English definition")
    meaningJp: str = Field(default="", description="Japanese gloss")
    meaningJpReading: str = Field(default="", description="Japanese reading (hiragana)")

    @field_validator(*WORD_TEXT_FIELDS, mode="before")
    @classmethod
    def _none_to_blank(cls, value):
        return "" if value is None else value

    @field_validator("id", mode="before")
    @classmethod
    def _ensure_id(cls, value):
        return value or generate_id()


# ============= GROUP MODELS =============

class WordGroup(BaseModel):
    """A dated bundle of words as stored in the document"""
    id: str
    title: str
    createdAt: int = Field(description="Millisecond epoch")
    passed: bool = False
    imageUrl: Optional[str] = Field(default=None, description="Main illustration URL")
    imageUrls: Optional[List[str]] = Field(default=None, description="Additional illustration URLs")
    lastScore: Optional[Union[int, float]] = Field(default=None, description="Most recent self-test score")
    words: List[Word] = Field(default_factory=list)

    def to_document(self) -> dict:
        """Plain JSON shape; absent optionals are omitted rather than written as null"""
        return self.model_dump(exclude_none=True)


class GroupUpdate(BaseModel):
    """Partial group; unset or null fields leave the stored value unchanged"""
    title: Optional[str] = None
    createdAt: Optional[int] = None
    passed: Optional[bool] = None
    imageUrl: Optional[str] = None
    imageUrls: Optional[List[Optional[str]]] = None
    lastScore: Optional[Union[int, float]] = None
    words: Optional[List[Word]] = None

    def provided_fields(self) -> dict:
        """Whitelisted fields the client actually sent with a non-null value"""
        data = {}
        for name in GROUP_WRITABLE_FIELDS:
            if name not in self.model_fields_set:
                continue
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


class GroupCreate(GroupUpdate):
    id: Optional[str] = None


# ============= REQUEST MODELS =============

class ImportRequest(BaseModel):
    title: str = Field(min_length=1)
    words: List[Word]


class AddImageRequest(BaseModel):
    image: Optional[str] = Field(default=None, description="data:image/<subtype>;base64,<payload>")

