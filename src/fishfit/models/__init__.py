from .vonbertalanffy import von_bertalanffy

__all__ = ["von_bertalanffy"]
