"""
注册验证码
验证码保存在 session 中，只能校验一次，过期后需要刷新
"""
import base64
import random
import time

from flask import session

SESSION_KEY = 'captcha'
# 排除 0/O、1/I/L 等容易混淆的字符
ALPHABET = 'ABCDEFGHJKMNPQRSTUVWXYZ23456789'
CODE_LENGTH = 4
MAX_AGE = 300

PAPER = '#faf7f2'
INK = ('#2d2a26', '#5b4636', '#7a5c3e')
NOISE = ('#c9b8a3', '#d8cbbb', '#b5a48f')


def generate_code(length=CODE_LENGTH):
    return ''.join(random.choice(ALPHABET) for _ in range(length))


def render_svg(code, width=120, height=40):
    """纸张底色 + 墨色字符的 SVG，附带干扰线"""
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}">',
        f'<rect width="{width}" height="{height}" rx="4" fill="{PAPER}"/>',
    ]
    for _ in range(4):
        parts.append(
            f'<line x1="{random.randint(0, width)}" y1="{random.randint(0, height)}" '
            f'x2="{random.randint(0, width)}" y2="{random.randint(0, height)}" '
            f'stroke="{random.choice(NOISE)}" stroke-width="1"/>'
        )
    for _ in range(20):
        parts.append(
            f'<circle cx="{random.randint(0, width)}" cy="{random.randint(0, height)}" r="1" '
            f'fill="{random.choice(NOISE)}"/>'
        )

    step = width / (len(code) + 1)
    for i, char in enumerate(code):
        x = round(step * (i + 0.7), 1)
        y = height // 2 + random.randint(-3, 3)
        parts.append(
            f'<text x="{x}" y="{y}" font-family="Georgia, serif" font-size="{random.randint(19, 23)}" '
            f'fill="{random.choice(INK)}" dominant-baseline="middle" '
            f'transform="rotate({random.randint(-15, 15)},{x},{y})">{char}</text>'
        )
    parts.append('</svg>')
    return ''.join(parts)


def to_data_uri(svg):
    return 'data:image/svg+xml;base64,' + base64.b64encode(svg.encode('utf-8')).decode('ascii')


def issue_captcha():
    """生成新验证码并写入 session，返回可直接放入 <img src> 的 data URI"""
    code = generate_code()
    session[SESSION_KEY] = {'code': code, 'issued_at': int(time.time())}
    return to_data_uri(render_svg(code))


def check_captcha(answer):
    """校验并作废当前验证码 (不区分大小写)"""
    challenge = session.pop(SESSION_KEY, None)
    if not challenge or not answer:
        return False
    if time.time() - challenge.get('issued_at', 0) > MAX_AGE:
        return False
    return challenge.get('code') == answer.strip().upper()
