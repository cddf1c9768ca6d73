# sinmungo/schemas/common.py
from __future__ import annotations

from typing import Literal, get_args

# Allowed enums
IssueStatus = Literal["접수됨", "검증중", "공론화진행", "기관전달", "종결"]
IssueConclusion = Literal["개선", "기각", "보류"]
ReportStatus = Literal["검토중", "처리완료", "기각"]
ReportOutcome = Literal["처리완료", "기각"]
CommentType = Literal["사실보완", "법률의견", "일반", "운영자코멘트"]
AttachmentFileType = Literal["판결문", "처분서", "공문", "녹취요약", "언론기사"]
EnforcementType = Literal["형사처벌", "행정처분", "과태료·범칙금", "단속", "수사", "기타"]
FieldCategory = Literal["교통", "환경", "노동", "건축", "식품위생", "세무", "소상공인", "기타"]
Region = Literal[
    "서울", "부산", "대구", "인천", "광주", "대전", "울산", "세종", "경기",
    "강원", "충북", "충남", "전북", "전남", "경북", "경남", "제주",
]
RequestType = Literal["제도개선", "재검토요청", "공론화", "기관답변요청"]
IssueSort = Literal["latest", "support_count", "trending"]
CommentSort = Literal["support_count", "latest"]
RankingPeriod = Literal["weekly", "monthly", "all"]

ISSUE_STATUSES = get_args(IssueStatus)
INITIAL_STATUS = "접수됨"
TERMINAL_STATUS = "종결"
OPEN_REPORT_STATUS = "검토중"
REPLY_COMMENT_TYPE = "일반"
OPERATOR_COMMENT_TYPE = "운영자코멘트"
FIELD_CATEGORIES = get_args(FieldCategory)
