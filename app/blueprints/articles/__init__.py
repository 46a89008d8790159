from flask import Blueprint

# 文章与分类管理
articles_bp = Blueprint('articles', __name__)

from . import routes
