"""Request and response messages of the backend services.

Each contract maps an RPC method name to its request and response message
types. Messages travel as JSON bodies, bytes fields as base64.
"""

from pydantic import Field

from housing.rpc.codec import Empty, RpcMessage
from housing.schemas.ad import PlaceMetadata, PlaceOut
from housing.schemas.city import CitiesResponse, OneCityResponse
from housing.schemas.review import (
    OneReviewResponse,
    ReviewIn,
    ReviewsResponse,
    ReviewUpdate,
)
from housing.schemas.session import CsrfTokenResponse, SessionData
from housing.schemas.user import (
    AuthResult,
    OneUserResponse,
    UserLogin,
    UserRegister,
    UsersResponse,
    UserUpdate,
)

ADS_SERVICE = "housing.Ads"
AUTH_SERVICE = "housing.Auth"
CITY_SERVICE = "housing.City"


class SessionRequest(RpcMessage):
    session_id: str = ""
    csrf_token: str = ""


class PlacesFilterRequest(SessionRequest):
    location: str = ""
    rating: str = ""
    new: str = ""
    gender: str = ""
    guests: str = ""
    limit: str = ""
    offset: str = ""
    date_from: str = ""
    date_to: str = ""


class AdRequest(SessionRequest):
    ad_id: str


class CreatePlaceRequest(SessionRequest):
    metadata: PlaceMetadata
    images: list[bytes] = Field(default_factory=list)


class UpdatePlaceRequest(AdRequest):
    metadata: PlaceMetadata
    images: list[bytes] = Field(default_factory=list)


class DeleteImageRequest(AdRequest):
    image_id: str


class PriorityRequest(AdRequest):
    amount: int


class CityPlacesRequest(RpcMessage):
    city: str


class UserIdRequest(RpcMessage):
    user_id: str


class CityRequest(RpcMessage):
    en_name: str


class UpdateUserRequest(SessionRequest):
    update: UserUpdate


class CreateReviewRequest(SessionRequest):
    review: ReviewIn


class HostReviewRequest(SessionRequest):
    host_id: str


class UpdateReviewRequest(HostReviewRequest):
    review: ReviewUpdate


class PlaceResponse(RpcMessage):
    place: PlaceOut


class PlacesResponse(RpcMessage):
    places: list[PlaceOut]


class StatusResponse(RpcMessage):
    response: str = "ok"


ADS_CONTRACT = {
    "GetAllPlaces": (PlacesFilterRequest, PlacesResponse),
    "GetOnePlace": (AdRequest, PlaceResponse),
    "CreatePlace": (CreatePlaceRequest, PlaceResponse),
    "UpdatePlace": (UpdatePlaceRequest, StatusResponse),
    "DeletePlace": (AdRequest, StatusResponse),
    "GetPlacesPerCity": (CityPlacesRequest, PlacesResponse),
    "GetUserPlaces": (UserIdRequest, PlacesResponse),
    "DeleteAdImage": (DeleteImageRequest, StatusResponse),
    "AddToFavorites": (AdRequest, StatusResponse),
    "DeleteFromFavorites": (AdRequest, StatusResponse),
    "GetUserFavorites": (SessionRequest, PlacesResponse),
    "UpdateFavoritesCount": (AdRequest, StatusResponse),
    "UpdatePriority": (PriorityRequest, StatusResponse),
}

AUTH_CONTRACT = {
    "Register": (UserRegister, AuthResult),
    "Login": (UserLogin, AuthResult),
    "Logout": (SessionRequest, StatusResponse),
    "GetSessionData": (SessionRequest, SessionData),
    "RefreshCsrfToken": (SessionRequest, CsrfTokenResponse),
    "GetAllUsers": (Empty, UsersResponse),
    "GetUserById": (UserIdRequest, OneUserResponse),
    "GetCurrentUser": (SessionRequest, OneUserResponse),
    "UpdateUser": (UpdateUserRequest, OneUserResponse),
    "CreateReview": (CreateReviewRequest, OneReviewResponse),
    "GetUserReviews": (UserIdRequest, ReviewsResponse),
    "UpdateReview": (UpdateReviewRequest, StatusResponse),
    "DeleteReview": (HostReviewRequest, StatusResponse),
}

CITY_CONTRACT = {
    "GetCities": (Empty, CitiesResponse),
    "GetOneCity": (CityRequest, OneCityResponse),
}

CONTRACTS = {
    ADS_SERVICE: ADS_CONTRACT,
    AUTH_SERVICE: AUTH_CONTRACT,
    CITY_SERVICE: CITY_CONTRACT,
}
