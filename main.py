# main.py

from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from mathdocx.app_logic import generate_docx_from_markdown
from mathdocx.config import load_config
from mathdocx.latex_converter import parse_latex

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class MarkdownRequest(BaseModel):
    markdown: str
    file_name: Optional[str] = "document.docx"


class MathRequest(BaseModel):
    latex: str


app = FastAPI(
    title="Markdown 公式文档转换 API",
    description="将包含 LaTeX 公式的 Markdown 转换为 Word 文档",
    version="1.0.0",
)

origins = [
    "http://localhost:4321",
    "http://127.0.0.1:4321",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

CONFIG = load_config()


@app.get("/")
def read_root():
    """
    根路径，用于检查API服务是否正常运行。

    Returns:
        dict: 包含欢迎信息的字典。
    """
    return {"message": "Markdown 公式文档转换 API 运行正常！"}


@app.post("/convert")
async def convert_endpoint(request: MarkdownRequest):
    """
    接收 Markdown 文本，返回生成的 Word 文档。

    Raises:
        HTTPException: Markdown 为空时返回 400。

    Returns:
        Response: .docx 文件内容，带下载文件名。
    """
    if not request.markdown.strip():
        raise HTTPException(status_code=400, detail="Markdown cannot be empty.")

    docx_bytes, _ = await generate_docx_from_markdown(request.markdown, config=CONFIG)

    file_name = request.file_name or "document.docx"
    if not file_name.lower().endswith('.docx'):
        file_name += '.docx'
    headers = {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"}
    return Response(content=docx_bytes, media_type=DOCX_MIME_TYPE, headers=headers)


@app.post("/parse-math")
async def parse_math_endpoint(request: MathRequest):
    """
    将 LaTeX 公式解析为数学节点树（JSON），便于调试公式渲染。

    Returns:
        dict: `{"tree": {...}}`。
    """
    return {"tree": parse_latex(request.latex).model_dump()}
