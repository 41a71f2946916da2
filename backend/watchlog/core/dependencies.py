from fastapi import Depends
from sqlalchemy.orm import Session

from watchlog.db import get_db
from watchlog.core.interfaces import MembershipProviderInterface, MovieCatalogInterface, MovieServiceInterface
from watchlog.core.tmdb_service import TMDBServiceFactory
from watchlog.services.membership_service import MembershipService
from watchlog.services.movie_service import MovieCatalogService


def get_membership_provider(db: Session = Depends(get_db)) -> MembershipProviderInterface:
    return MembershipService(db)


def get_movie_catalog(db: Session = Depends(get_db)) -> MovieCatalogInterface:
    return MovieCatalogService(db)


def get_tmdb_movie_service() -> MovieServiceInterface:
    return TMDBServiceFactory.create_movie_service()
