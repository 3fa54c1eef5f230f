import uuid

from housing.core.errors import NoActiveSession, SessionExpired
from housing.core.security import CsrfTokens
from housing.rpc.codec import Empty
from housing.rpc.messages import (
    AdRequest,
    CityPlacesRequest,
    CityRequest,
    CreatePlaceRequest,
    CreateReviewRequest,
    DeleteImageRequest,
    HostReviewRequest,
    PlaceResponse,
    PlacesFilterRequest,
    PlacesResponse,
    PriorityRequest,
    SessionRequest,
    StatusResponse,
    UpdatePlaceRequest,
    UpdateReviewRequest,
    UpdateUserRequest,
    UserIdRequest,
)
from housing.schemas.city import CitiesResponse, OneCityResponse
from housing.schemas.review import OneReviewResponse, ReviewsResponse
from housing.schemas.session import CsrfTokenResponse, SessionData
from housing.schemas.user import (
    AuthResult,
    OneUserResponse,
    UserLogin,
    UserRegister,
    UsersResponse,
)
from housing.services.ads import AdService, parse_filter
from housing.services.auth import AuthService
from housing.services.cities import CityService
from housing.services.reviews import ReviewService
from housing.services.sessions import SessionService


class AdsServicer:
    def __init__(
        self, ads: AdService, sessions: SessionService, csrf: CsrfTokens
    ) -> None:
        self._ads = ads
        self._sessions = sessions
        self._csrf = csrf

    async def _optional_user(self, session_id: str) -> uuid.UUID | None:
        if not session_id:
            return None
        try:
            return await self._sessions.lookup(session_id)
        except (NoActiveSession, SessionExpired):
            return None

    async def _authorize(self, request: SessionRequest) -> uuid.UUID:
        user_id = await self._sessions.lookup(request.session_id)
        self._csrf.validate(request.csrf_token, request.session_id)
        return user_id

    async def GetAllPlaces(self, request: PlacesFilterRequest) -> PlacesResponse:
        flt = parse_filter(
            location=request.location,
            rating=request.rating,
            new=request.new,
            gender=request.gender,
            guests=request.guests,
            limit=request.limit,
            offset=request.offset,
            date_from=request.date_from,
            date_to=request.date_to,
        )
        user_id = await self._optional_user(request.session_id)
        return PlacesResponse(places=await self._ads.get_all_places(flt, user_id))

    async def GetOnePlace(self, request: AdRequest) -> PlaceResponse:
        user_id = await self._optional_user(request.session_id)
        return PlaceResponse(place=await self._ads.get_one_place(request.ad_id, user_id))

    async def CreatePlace(self, request: CreatePlaceRequest) -> PlaceResponse:
        user_id = await self._authorize(request)
        place = await self._ads.create_place(request.metadata, request.images, user_id)
        return PlaceResponse(place=place)

    async def UpdatePlace(self, request: UpdatePlaceRequest) -> StatusResponse:
        user_id = await self._authorize(request)
        await self._ads.update_place(
            request.metadata, request.ad_id, user_id, request.images
        )
        return StatusResponse(response="Successfully updated ad")

    async def DeletePlace(self, request: AdRequest) -> StatusResponse:
        user_id = await self._authorize(request)
        await self._ads.delete_place(request.ad_id, user_id)
        return StatusResponse(response="Successfully deleted ad")

    async def GetPlacesPerCity(self, request: CityPlacesRequest) -> PlacesResponse:
        return PlacesResponse(places=await self._ads.get_places_per_city(request.city))

    async def GetUserPlaces(self, request: UserIdRequest) -> PlacesResponse:
        return PlacesResponse(places=await self._ads.get_user_places(request.user_id))

    async def DeleteAdImage(self, request: DeleteImageRequest) -> StatusResponse:
        user_id = await self._authorize(request)
        await self._ads.delete_ad_image(request.ad_id, request.image_id, user_id)
        return StatusResponse(response="Successfully deleted image")

    async def AddToFavorites(self, request: AdRequest) -> StatusResponse:
        user_id = await self._authorize(request)
        await self._ads.add_to_favorites(request.ad_id, user_id)
        return StatusResponse(response="Successfully added to favorites")

    async def DeleteFromFavorites(self, request: AdRequest) -> StatusResponse:
        user_id = await self._authorize(request)
        await self._ads.delete_from_favorites(request.ad_id, user_id)
        return StatusResponse(response="Successfully deleted from favorites")

    async def GetUserFavorites(self, request: SessionRequest) -> PlacesResponse:
        user_id = await self._sessions.lookup(request.session_id)
        return PlacesResponse(places=await self._ads.get_user_favorites(user_id))

    async def UpdateFavoritesCount(self, request: AdRequest) -> StatusResponse:
        await self._authorize(request)
        await self._ads.update_favorites_count(request.ad_id)
        return StatusResponse(response="Successfully updated favorites count")

    async def UpdatePriority(self, request: PriorityRequest) -> StatusResponse:
        user_id = await self._authorize(request)
        await self._ads.update_priority(request.ad_id, user_id, request.amount)
        return StatusResponse(response="Successfully updated priority")


class AuthServicer:
    def __init__(self, auth: AuthService, reviews: ReviewService) -> None:
        self._auth = auth
        self._reviews = reviews

    async def _authorize(self, request: SessionRequest) -> uuid.UUID:
        user_id = await self._auth.authenticate(request.session_id)
        self._auth.check_csrf(request.csrf_token, request.session_id)
        return user_id

    async def Register(self, request: UserRegister) -> AuthResult:
        return await self._auth.register(request)

    async def Login(self, request: UserLogin) -> AuthResult:
        return await self._auth.login(request)

    async def Logout(self, request: SessionRequest) -> StatusResponse:
        await self._auth.logout(request.session_id)
        return StatusResponse(response="Successfully logged out")

    async def GetSessionData(self, request: SessionRequest) -> SessionData:
        return await self._auth.get_session_data(request.session_id)

    async def RefreshCsrfToken(self, request: SessionRequest) -> CsrfTokenResponse:
        token = await self._auth.refresh_csrf_token(request.session_id)
        return CsrfTokenResponse(csrf_token=token)

    async def GetAllUsers(self, request: Empty) -> UsersResponse:
        return UsersResponse(users=await self._auth.get_all_users())

    async def GetUserById(self, request: UserIdRequest) -> OneUserResponse:
        return OneUserResponse(user=await self._auth.get_user_by_id(request.user_id))

    async def GetCurrentUser(self, request: SessionRequest) -> OneUserResponse:
        return OneUserResponse(user=await self._auth.get_current_user(request.session_id))

    async def UpdateUser(self, request: UpdateUserRequest) -> OneUserResponse:
        user_id = await self._authorize(request)
        return OneUserResponse(user=await self._auth.update_user(user_id, request.update))

    async def CreateReview(self, request: CreateReviewRequest) -> OneReviewResponse:
        user_id = await self._authorize(request)
        review = await self._reviews.create_review(user_id, request.review)
        return OneReviewResponse(review=review)

    async def GetUserReviews(self, request: UserIdRequest) -> ReviewsResponse:
        return ReviewsResponse(
            reviews=await self._reviews.get_user_reviews(request.user_id)
        )

    async def UpdateReview(self, request: UpdateReviewRequest) -> StatusResponse:
        user_id = await self._authorize(request)
        await self._reviews.update_review(user_id, request.host_id, request.review)
        return StatusResponse(response="Successfully updated review")

    async def DeleteReview(self, request: HostReviewRequest) -> StatusResponse:
        user_id = await self._authorize(request)
        await self._reviews.delete_review(user_id, request.host_id)
        return StatusResponse(response="Successfully deleted review")


class CityServicer:
    def __init__(self, cities: CityService) -> None:
        self._cities = cities

    async def GetCities(self, request: Empty) -> CitiesResponse:
        return CitiesResponse(cities=await self._cities.get_cities())

    async def GetOneCity(self, request: CityRequest) -> OneCityResponse:
        return OneCityResponse(city=await self._cities.get_one_city(request.en_name))
