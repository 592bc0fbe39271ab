from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

Category = Literal["haircare", "skincare"]


# Accepted shapes of the batch upload response. The reconciler validates the
# raw JSON against these in order and normalizes the winner to a list of ids.

class UploadedFileRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    file_id: Optional[str] = Field(None, alias="fileId")
    mongo_id: Optional[Union[str, Dict[str, Any]]] = Field(None, alias="_id")
    filename: Optional[str] = None

    def identifier(self) -> Optional[str]:
        """First populated id field, unwrapping `{"$oid": ...}`."""
        for value in (self.id, self.file_id, self.mongo_id):
            if isinstance(value, dict):
                value = value.get("$oid")
            if value:
                return str(value)
        return None

class FilesUploadResponse(BaseModel):
    files: List[Union[UploadedFileRef, str]]

class IdsUploadResponse(BaseModel):
    ids: List[str]

class FileIdUploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(alias="fileId")

class SingleFileUploadResponse(BaseModel):
    files: str

UploadBatchResponse = Union[
    FilesUploadResponse,
    IdsUploadResponse,
    FileIdUploadResponse,
    SingleFileUploadResponse,
]


class ProductForm(BaseModel):
    """Editable product fields as the admin types them.

    List-valued attributes are kept as comma-separated text until save.
    """
    name: str = ""
    description: str = ""
    price: Union[float, str] = ""
    range: str = ""
    hairType: str = ""
    concern: str = ""
    skinType: str = ""
    skinConcern: str = ""

class ProductFormUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Union[float, str]] = None
    range: Optional[str] = None
    hairType: Optional[str] = None
    concern: Optional[str] = None
    skinType: Optional[str] = None
    skinConcern: Optional[str] = None

class OpenAddRequest(BaseModel):
    category: Category

class OpenEditRequest(BaseModel):
    category: Category
    product_id: str

class SlotView(BaseModel):
    index: int
    kind: Literal["existing", "pending"]
    ref: Optional[str] = None
    filename: Optional[str] = None
    preview: Optional[str] = None
    src: str

class SessionView(BaseModel):
    session_id: str
    mode: Literal["add", "edit"]
    category: Category
    product_id: Optional[str] = None
    busy: bool
    form: ProductForm
    images: List[SlotView]

class SubmitResponse(BaseModel):
    product_id: Optional[str] = None
    mode: Literal["add", "edit"]
    images: List[str]
    uploaded: int
    dropped: int

class ProductListResponse(BaseModel):
    count: int
    items: list

class LoginRequest(BaseModel):
    email: str
    password: str

class LoginResponse(BaseModel):
    token: str

class ApplyOfferRequest(BaseModel):
    category: Category
    discount: float
    base_price: Optional[float] = None

class OfferResponse(BaseModel):
    product_id: str
    price: float
    oldPrice: float
    originalPrice: float
    offer: float

class RegisterRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""

class RegisterResponse(BaseModel):
    message: str

class OfferImageResponse(BaseModel):
    filename: str
    file_ids: List[str]
