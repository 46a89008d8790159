from flask import Blueprint

# 公开站点：首页、文章、分类、页面
main_bp = Blueprint('main', __name__)

from . import routes
