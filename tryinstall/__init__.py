"""tryinstall - instala uma feature do Karaf fingindo os pacotes ausentes."""

__version__ = "0.1.0"
