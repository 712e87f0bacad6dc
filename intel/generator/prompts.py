import json
from typing import List, Optional

from intel.models import CompanyProfile, FinancialData, NewsItem, ScrapedPage

UNKNOWN = "不明"


def _or_unknown(value: Optional[str]) -> str:
    return value or UNKNOWN


def _titles(items: List[NewsItem], limit: int = 5) -> str:
    return "\n".join(f"- {n.title}" for n in items[:limit]) or "なし"


def industry_prompt(company_name: str, page: ScrapedPage) -> str:
    return f"""
以下のWebサイト情報から、この企業の業種判定と、PESTLE分析用のニュース検索クエリを生成してください。

## 企業名
{company_name}

## Webサイト情報
タイトル: {page.title}
説明: {page.description}
本文（抜粋）: {page.body_text[:2500]}

## 重要な指示
1. この企業の「顧客（クライアント）」が誰かを特定してください
2. ニュースAPIは複雑なクエリが苦手なので、シンプルなキーワード2〜3語にしてください
3. AND/ORは使わず、スペース区切りで記述してください（例: 弁護士 広告規制）
4. 「業界」「動向」「サービス業」などの汎用的すぎる語は使わないでください
5. regulation にはその業界特有の法律名を、clientMarket には顧客業界の具体的な課題を含めてください

## 回答形式（JSONのみ）
{{
  "industryCode": "72",
  "industry": "専門サービス業",
  "businessType": "BtoB",
  "estimatedScale": "中小企業",
  "mainProducts": ["Webマーケティング支援", "BPOサービス"],
  "clientIndustries": ["弁護士", "税理士"],
  "pestleQueries": {{
    "regulation": "弁護士 広告規制",
    "clientMarket": "債務整理 増加",
    "technology": "リーガルテック 導入",
    "industry": "士業 マーケティング"
  }}
}}
"""


def _financials_block(financials: List[FinancialData]) -> str:
    if not financials:
        return ""
    latest = financials[0]
    return (
        f"- 売上: {latest.revenue}\n"
        f"- 営業利益: {latest.operating_profit}\n"
        f"- 純利益: {latest.net_income} ({latest.year})"
    )


def _page_block(page: ScrapedPage) -> str:
    info = page.company_info
    stack = page.tech_stack
    return f"""
## Webサイト情報
- タイトル: {page.title}
- 説明: {page.description}
- 本文要約: {page.body_text[:3000]}
- 採用ページリンク: {", ".join(page.recruit_links) or "なし"}
- 売上高: {_or_unknown(info.revenue)}
- 資本金: {_or_unknown(info.capital)}
- 従業員数: {_or_unknown(info.employees)}
- 設立: {_or_unknown(info.founded)}
- 決算: {_or_unknown(info.fiscal_year_end)}

## Tech Stack (検出されたツール)
- CMS: {", ".join(stack.cms) or UNKNOWN}
- CRM/MA: {", ".join(stack.crm + stack.ma) or UNKNOWN}
- Analytics: {", ".join(stack.analytics) or UNKNOWN}
- EC: {", ".join(stack.ec) or UNKNOWN}
- JS Frameworks: {", ".join(stack.js) or UNKNOWN}
"""


STRATEGY_SCHEMA = """
```json
{
  "summary": "企業サマリ（5行程度）",
  "industrySummary": "業界要約（5行程度）",
  "industryData": {"marketSize": "", "growthRate": "", "companyCount": "", "laborPopulation": ""},
  "techStackAnalysis": {"maturity": "", "tools": [], "missing": [], "hypothesis": "必ず記述"},
  "businessSummary": {"summary": "", "serviceClass": "", "customerSegment": "", "revenueModel": "", "conclusion": ""},
  "valueChain": {"ksf": [], "stages": [{"name": "", "activities": [], "significance": ""}], "conclusion": ""},
  "businessModel": {"costStructure": "", "unitEconomics": "", "economicMoat": "", "conclusion": ""},
  "financialHealth": {"status": "", "concern": "", "investmentCapacity": "", "budgetCycle": "", "decisionSpeed": "", "conclusion": ""},
  "recruitment": {"jobTypes": [], "count": "", "phase": "", "conclusion": ""},
  "sevenS": {"strategy": "", "structure": "", "systems": "", "sharedValues": "", "style": "", "staff": "", "skills": ""},
  "pestle": {"political": "", "economic": "", "social": "", "technological": "", "legal": "", "environmental": "", "futureOutlook": "", "conclusion": ""},
  "fiveForces": {"rivalry": "", "newEntrants": "", "substitutes": "", "suppliers": "", "buyers": "", "futureOutlook": "", "conclusion": ""},
  "swot": {"strengths": [], "weaknesses": [], "opportunities": [], "threats": [], "unknowns": [], "conclusion": ""},
  "stp": {"segmentation": "", "targeting": "", "positioning": "", "conclusion": ""},
  "threeC": {"customer": "", "competitor": "", "company": "", "conclusion": ""},
  "marketing": {"valueProposition": "", "ksf": [], "conclusion": ""},
  "estimatedChallenges": ["推定課題1", "推定課題2"],
  "salesStrategy": "誰に、何を、どう提案すべきか",
  "callTalk": "電話営業用トークスクリプト（改行は\\nで）",
  "formDraft": {"short": "50文字程度のフォーム営業文", "long": "営業メール文案（改行は\\nで）"},
  "score": 75
}
```
"""


def strategy_prompt(
    profile: CompanyProfile,
    financials: List[FinancialData],
    company_news: List[NewsItem],
    industry_news: List[NewsItem],
    page: ScrapedPage,
    inquiry_body: Optional[str] = None,
    business_segment: Optional[str] = None,
    additional_page: Optional[ScrapedPage] = None,
) -> str:
    segment = ""
    if business_segment:
        segment = (
            f"\n## 分析対象事業\n「{business_segment}」事業に焦点を絞って分析してください。"
            "複数事業を持つ企業でも、この事業の強み・弱み・市場環境・競合・営業戦略のみを対象とします。\n"
        )
    inquiry = f"\n## 問い合わせ内容\n{inquiry_body}\n" if inquiry_body else ""
    additional = ""
    if additional_page is not None:
        additional = f"""
## 追加参考URL情報
ユーザーが追加で指定した参考URLです。分析・提案に反映してください。
- タイトル: {additional_page.title}
- 概要: {additional_page.description}
- 本文: {additional_page.body_text[:3000]}
"""

    return f"""
あなたは戦略コンサルタント兼BtoBセールスのエキスパートです。
以下の企業情報、財務データ、ニュース、Webサイト情報、利用ツール（Tech Stack）を統合し、
具体的で洞察に富んだ「企業戦略カルテ」を作成してください。
各分析パートには必ず「結論（conclusion）」を含めてください。

## 表現ルール
- 重要なキーワード/結論/数値は **太字** で強調してください。
- 「情報が見つからない/不明」は弱み（weaknesses）に含めず swot.unknowns に入れてください。
- バリューチェーンには採用情報やニュースから推測される注力プロセスを反映してください。

## 対象企業情報
- 企業名: {profile.name}
- 業種: {_or_unknown(profile.industry_name)}
- 所在地: {_or_unknown(profile.address)}
- 上場区分: {profile.listing_status}
{_financials_block(financials)}
{segment}
## 成長フェーズ判定基準（ヒント）
1. 拡大投資期: 売上増、採用増、新規事業が多い → 攻めの投資（MA / SaaS / 採用支援）
2. 停滞期: 売上横ばい、リリース減少、採用抑制 → 改善・効率化（コスト削減、DX）
3. 衰退期: 売上減、人員削減、ネガティブニュース → 慎重に、または抜本的改革の提案
{_page_block(page)}
## 最新ニュース（企業）
{_titles(company_news)}

## 最新ニュース（業界・トレンド）
{_titles(industry_news)}
{inquiry}{additional}
## 出力形式 (JSON)
{STRATEGY_SCHEMA}
※「score」はこの企業が新しいソリューションを導入する可能性を0-100で評価してください
（80以上: 今すぐアプローチすべき / 50-79: 予算や優先順位に懸念 / 49以下: 新規投資が難しい）。
"""


def repair_prompt(company_name: str, missing_paths: List[str], sections: dict) -> str:
    return f"""
あなたは戦略コンサルタントです。次のJSONは企業戦略カルテの一部ですが、いくつかの conclusion（結論）が空欄です。
対象企業: {company_name}

## 依頼
- missingPaths の各パスについて、conclusion を1〜3文で補完してください。
- 既存の他フィールドを根拠にし、推測は「〜の可能性」として慎重に書いてください。
- 出力はJSONのみ。キーは missingPaths の各値（例: "pestle.conclusion"）、値は補完した文字列。
- 余計なキーは出力しないでください。

missingPaths:
{json.dumps(missing_paths, ensure_ascii=False)}

sections:
{json.dumps(sections, ensure_ascii=False)}
"""


def inbound_prompt(company_name: str, page: ScrapedPage, lp_title: str, lp_url: str, inflow_type: str) -> str:
    return f"""
あなたはBtoBマーケティングとインサイドセールスのプロフェッショナルです。
「このリード企業が、なぜこのタイミングで、このLPに関心を持ったのか？」という来訪仮説を構築してください。

## リード企業情報
- 企業名: {company_name}
- 企業サイト要約: {page.description}
- 事業内容(抜粋): {page.body_text[:1000]}

## 流入情報
- アクション: {inflow_type}
- 閲覧ページ(LP): {lp_title}
- URL: {lp_url}

## 分析プロセス
1. 企業が直面している外部環境要因（PESTLE）を推測する
2. LPのタイトルから担当者が何を探しているか（比較、事例、基礎知識、コスト感など）を特定する
3. 背景ときっかけをつなげて仮説にする

## 出力形式 (JSONのみ)
```json
{{
  "pestle_factors": ["Social(人手不足)", "Legal(電子帳簿保存法)"],
  "hypothesis": "人手不足を背景に、業務効率化の手段を比較検討している可能性が高い。",
  "sales_hook": "現場の省力化についてどのような取り組みをされていますか？"
}}
```
"""
