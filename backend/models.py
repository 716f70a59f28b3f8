from pydantic import BaseModel, ConfigDict
from typing import List, Optional

# NewsAPI shapes are loosely typed so upstream schema additions pass through.


class Source(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None


class Article(BaseModel):
    model_config = ConfigDict(extra="allow")

    source: Optional[Source] = None
    author: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    urlToImage: Optional[str] = None
    publishedAt: Optional[str] = None
    content: Optional[str] = None


class NewsResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: Optional[str] = None
    totalResults: Optional[int] = None
    articles: Optional[List[Optional[Article]]] = None


class TransformRequest(BaseModel):
    title: str = ""
    description: str = ""


class TransformResult(BaseModel):
    transformedContent: str


class ChatMessage(BaseModel):
    role: str
    content: str


class CompletionRequest(BaseModel):
    model: str
    messages: List[ChatMessage]
    max_tokens: int
    temperature: float


# Upstream replies may omit the role or send a null content.
class ReplyMessage(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class Choice(BaseModel):
    message: ReplyMessage = ReplyMessage()


class CompletionResponse(BaseModel):
    choices: Optional[List[Choice]] = None
