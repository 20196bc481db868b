"""Screens for each state of the reader."""

from spacecoast_reader.screens.detail import DetailScreen
from spacecoast_reader.screens.listing import ListingScreen
from spacecoast_reader.screens.splash import SplashScreen

__all__ = [
    "DetailScreen",
    "ListingScreen",
    "SplashScreen",
]
