"""文件管理 - 层级列表、对象列表、上传/删除/临时链接 的响应模型。"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from app.packages.s3manager.api.v1.schemas.common import ResponseEnvelope


class FolderItem(BaseModel):
    type: Literal["folder"] = "folder"
    name: str
    fullPath: str


class FileItem(BaseModel):
    type: Literal["file"] = "file"
    name: str
    key: str
    size: int
    lastModified: Optional[str] = None


ListItem = Annotated[Union[FolderItem, FileItem], Field(discriminator="type")]


class BreadcrumbItem(BaseModel):
    name: str
    path: str


class FilesLevelData(BaseModel):
    currentPath: str
    breadcrumbs: list[BreadcrumbItem]
    items: list[ListItem]


class ObjectItem(BaseModel):
    key: str
    size: int
    lastModified: Optional[str] = None


class ObjectKeyData(BaseModel):
    key: str


class PresignData(BaseModel):
    url: str
    expiresIn: int


FilesLevelResponse = ResponseEnvelope[FilesLevelData]
ObjectListResponse = ResponseEnvelope[list[ObjectItem]]
ObjectMutationResponse = ResponseEnvelope[ObjectKeyData]
PresignResponse = ResponseEnvelope[PresignData]
