# module binclean.app
from binclean.app_setup.factory import create_app

# App globale
app = create_app()
