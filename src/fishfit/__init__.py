"""fishfit public API."""
from .alk import assign_ages, check_key, make_key
from .depletion import Depletion, depletion
from .extra_tests import extra_ss, lrt
from .growth import Parameterization, growth_function
from .lencat import add_lencat, lencat
from .model import Model
from .mortality import ChapmanRobson, chapman_robson
from .psd import psd_add, psd_calc
from .run import Results, Run
from .starts import GrowthObservations, starts_names, vb_starts
from . import models
from .models import von_bertalanffy

__all__ = [
    "lencat",
    "add_lencat",
    "check_key",
    "make_key",
    "assign_ages",
    "Parameterization",
    "growth_function",
    "GrowthObservations",
    "vb_starts",
    "starts_names",
    "Model",
    "Run",
    "Results",
    "models",
    "von_bertalanffy",
    "extra_ss",
    "lrt",
    "Depletion",
    "depletion",
    "ChapmanRobson",
    "chapman_robson",
    "psd_calc",
    "psd_add",
]
