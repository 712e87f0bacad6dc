import re
from typing import List, NamedTuple, Optional, Tuple


class IndustryMatch(NamedTuple):
    category_code: str
    category_name: str
    code: str
    name: str
    news_query: str


# (código, nome, palavras-chave, query de notícias) agrupados por categoria JSIC.
# A ordem é o ranking: a primeira palavra-chave encontrada decide.
INDUSTRY_TABLE: List[Tuple[str, str, List[Tuple[str, str, Tuple[str, ...], str]]]] = [
    ("A", "農業，林業", [
        ("01", "農業", ("農業", "農家", "農産物", "野菜", "果樹"), "農業 市場"),
        ("02", "林業", ("林業", "木材", "森林"), "林業 木材"),
    ]),
    ("B", "漁業", [
        ("03", "漁業", ("漁業", "水産", "漁船", "養殖"), "水産 養殖"),
    ]),
    ("D", "建設業", [
        ("06", "総合工事業", ("建設", "ゼネコン", "施工", "工事", "建築"), "建設 受注"),
        ("07", "職別工事業", ("設備工事", "電気工事", "管工事", "内装"), "設備工事 人手不足"),
        ("08", "設備工事業", ("電気設備", "空調", "給排水"), "空調設備 市場"),
    ]),
    ("E", "製造業", [
        ("09", "食料品製造業", ("食品メーカー", "食品製造", "飲料", "菓子"), "食品メーカー 値上げ"),
        ("11", "繊維工業", ("繊維", "アパレル", "衣料", "縫製"), "アパレル 市場"),
        ("15", "印刷業", ("印刷", "出版"), "印刷 需要"),
        ("16", "化学工業", ("化学", "化粧品", "医薬品", "塗料"), "化学 素材"),
        ("18", "プラスチック製品製造業", ("プラスチック", "樹脂"), "プラスチック 規制"),
        ("25", "はん用機械器具製造業", ("機械", "機器", "装置"), "工作機械 受注"),
        ("28", "電子部品・デバイス製造業", ("半導体", "電子部品", "デバイス"), "半導体 市場"),
        ("30", "情報通信機械器具製造業", ("通信機器", "IT機器"), "通信機器 市場"),
        ("31", "輸送用機械器具製造業", ("自動車", "車両", "航空機"), "自動車 EV"),
    ]),
    ("F", "電気・ガス・熱供給・水道業", [
        ("33", "電気業", ("電力", "発電", "送電"), "電力 再エネ"),
        ("34", "ガス業", ("都市ガス", "ガス"), "都市ガス 料金"),
    ]),
    ("G", "情報通信業", [
        ("37", "通信業", ("通信", "携帯", "モバイル", "5G"), "通信 5G"),
        ("39", "情報サービス業", ("ソフトウェア", "SaaS", "システム", "クラウド", "アプリ", "DX", "IT"), "SaaS 市場"),
        ("40", "インターネット附随サービス業", ("インターネット", "ポータル", "Web"), "インターネット広告 市場"),
        ("41", "映像・音声・文字情報制作業", ("映像", "動画", "アニメ", "制作"), "動画制作 市場"),
    ]),
    ("H", "運輸業，郵便業", [
        ("44", "道路貨物運送業", ("物流", "運送", "配送", "トラック", "宅配"), "物流 2024年問題"),
        ("47", "倉庫業", ("倉庫", "物流センター"), "倉庫 自動化"),
    ]),
    ("I", "卸売業，小売業", [
        ("50", "各種商品卸売業", ("卸売", "商社", "問屋"), "卸売 商社"),
        ("56", "各種商品小売業", ("百貨店", "スーパー", "小売"), "小売 売上"),
        ("60", "その他の小売業", ("ドラッグストア", "家電量販", "ホームセンター"), "ドラッグストア 市場"),
        ("61", "無店舗小売業", ("通販", "ネット通販", "eコマース", "EC"), "EC 通販 市場"),
    ]),
    ("J", "金融業，保険業", [
        ("62", "銀行業", ("銀行", "金融機関", "メガバンク"), "銀行 DX"),
        ("64", "貸金業，クレジットカード業", ("クレジット", "フィンテック", "決済"), "キャッシュレス 決済"),
        ("65", "金融商品取引業", ("証券", "資産運用", "投資"), "証券 NISA"),
        ("67", "保険業", ("生命保険", "損害保険", "保険"), "保険 市場"),
    ]),
    ("K", "不動産業，物品賃貸業", [
        ("69", "不動産賃貸業・管理業", ("賃貸管理", "ビル管理", "不動産管理"), "不動産管理 市場"),
        ("68", "不動産取引業", ("不動産", "マンション", "住宅", "賃貸", "分譲"), "不動産 市場"),
        ("70", "物品賃貸業", ("リース", "レンタル"), "リース 市場"),
    ]),
    ("L", "学術研究，専門・技術サービス業", [
        ("72", "専門サービス業", ("コンサルティング", "コンサル", "士業", "税理士", "会計士", "弁護士", "社労士", "行政書士", "司法書士"), "士業 コンサルティング"),
        ("73", "広告業", ("広告代理店", "広告", "マーケティング"), "デジタル広告 市場"),
        ("74", "技術サービス業", ("設計", "エンジニアリング", "測量", "検査"), "技術サービス 人手不足"),
    ]),
    ("M", "宿泊業，飲食サービス業", [
        ("75", "宿泊業", ("ホテル", "旅館", "宿泊", "リゾート"), "ホテル インバウンド"),
        ("76", "飲食店", ("飲食", "レストラン", "カフェ", "居酒屋", "ラーメン", "ファストフード"), "外食 市場"),
    ]),
    ("N", "生活関連サービス業，娯楽業", [
        ("78", "洗濯・理容・美容・浴場業", ("美容室", "ヘアサロン", "美容", "サロン", "エステ", "ネイル", "理容", "脱毛"), "美容サロン 市場"),
        ("79", "その他の生活関連サービス業", ("旅行", "冠婚葬祭", "結婚式", "葬儀"), "ブライダル 市場"),
        ("80", "娯楽業", ("レジャー", "アミューズメント", "フィットネス", "ジム", "スポーツ", "ゲーム"), "フィットネス 市場"),
    ]),
    ("O", "教育，学習支援業", [
        ("81", "学校教育", ("大学", "専門学校", "学校"), "大学 入試"),
        ("82", "その他の教育，学習支援業", ("塾", "予備校", "英会話", "スクール", "研修", "eラーニング", "教育"), "教育 EdTech"),
    ]),
    ("P", "医療，福祉", [
        ("83", "医療業", ("医療", "病院", "クリニック", "診療所", "歯科", "眼科"), "医療 DX"),
        ("85", "社会保険・社会福祉・介護事業", ("介護", "福祉", "老人ホーム", "デイサービス", "訪問介護"), "介護 人手不足"),
    ]),
    ("R", "サービス業（他に分類されないもの）", [
        ("923", "警備業", ("警備", "防犯", "監視", "ガード", "セキュリティ"), "警備 人手不足"),
        ("91", "職業紹介・労働者派遣業", ("人材", "派遣", "転職", "リクルート", "HR"), "人材紹介 市場"),
        ("92", "その他の事業サービス業", ("ビルメンテナンス", "清掃", "コールセンター", "BPO"), "BPO 市場"),
    ]),
]


def _keyword_in(keyword: str, text: str) -> bool:
    # siglas latinas (EC, IT, HR) só como palavra inteira: "ec" aparece em "recruit"
    if keyword.isascii():
        return re.search(rf"(?<![a-z]){re.escape(keyword.lower())}(?![a-z])", text) is not None
    return keyword.lower() in text


def detect_industry_by_keywords(text: str) -> Optional[IndustryMatch]:
    lowered = (text or "").lower()
    if not lowered:
        return None
    for category_code, category_name, subcategories in INDUSTRY_TABLE:
        for code, name, keywords, news_query in subcategories:
            if any(_keyword_in(k, lowered) for k in keywords):
                return IndustryMatch(category_code, category_name, code, name, news_query)
    return None
