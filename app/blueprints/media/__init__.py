from flask import Blueprint

# 媒体库
media_bp = Blueprint('media', __name__)

from . import routes
