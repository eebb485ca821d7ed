from enum import Enum

from pydantic import BaseModel, Field


class ImageQuality(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ResolvedImage(BaseModel):
    """An image discovered on a page, with whatever metadata could be resolved."""

    url: str = Field(
        description="Absolute image URL",
        examples=["https://cdn.example.com/products/shoe.jpg"],
    )
    filename: str = Field(
        description="Last path segment of the URL, or image.jpg",
        examples=["shoe.jpg"],
    )
    size: int | None = Field(
        default=None, description="Byte size from Content-Length", examples=[284512]
    )
    width: int | None = Field(default=None, description="Pixel width", examples=[1200])
    height: int | None = Field(default=None, description="Pixel height", examples=[800])
    type: str | None = Field(
        default=None, description="MIME type reported by the server", examples=["image/jpeg"]
    )
    quality: ImageQuality | None = Field(
        default=None,
        description="Quality tier derived from size and dimensions: low / medium / high",
        examples=["medium"],
    )


class ScrapeResponse(BaseModel):
    """Result of one scrape request."""

    url: str = Field(description="Scraped page URL", examples=["https://example.com/shop"])
    images: list[ResolvedImage] = Field(description="Unique images in discovery order")
    total: int = Field(description="Number of images", examples=[24])
    credits_remaining: int | None = Field(
        default=None, description="Credit balance after this request", examples=[9]
    )
