"""User-facing texts shown by the admin console."""

# Wallet pre-flight and account discovery
WALLET_MISSING = "发布到链上需要连接 MetaMask 钱包"
WALLET_NOT_CONNECTED = "请先连接钱包再发布市场"
WALLET_INFO_UNAVAILABLE = "无法获取钱包信息"
WALLET_ACCOUNT_CHANGED = "钱包账户已切换，请重新提交市场"

# Backend creation
CREATE_FAILED = "创建市场失败"
BACKEND_UNREACHABLE = "无法连接服务器，创建市场失败"

# Wallet publication protocol
PREPARE_FAILED = "准备交易失败"
CONFIRM_IN_WALLET = "请在钱包中确认交易..."
TRANSACTION_BROADCAST = "交易已提交到区块链"
AWAITING_CONFIRMATION = "等待交易确认..."
USER_CANCELLED = "用户取消了交易"
INSUFFICIENT_FUNDS = "余额不足，请确保有足够的BNB支付gas费"
WALLET_SIGN_FAILED = "钱包签名失败"
SUBMIT_FAILED = "提交交易失败"

# Outcomes
CREATED = "🎉 市场创建成功！"
CREATED_AND_PUBLISHED = "🎉 市场创建并发布成功！"

# Draft validation
SELECT_LEAGUE = "请选择联赛"
SELECT_HOME_TEAM = "请选择主队"
SELECT_AWAY_TEAM = "请选择客队"
SAME_TEAMS = "主队和客队不能相同"
SELECT_MATCH_DATE = "请选择比赛日期"
SELECT_MATCH_TIME = "请选择比赛时间"
SELECT_HANDICAP = "请选择让球数"
INVALID_MATCH_TIME = "比赛时间格式不正确"

SELECT_ASSET = "请选择资产"
SELECT_PRICE_TARGET = "请选择或输入价格目标"
SELECT_TIMEFRAME = "请选择时间范围"

ENTER_TITLE = "请输入市场标题"
ENTER_DESCRIPTION = "请输入市场描述"
ENTER_OPTION_A = "请输入选项A"
ENTER_OPTION_B = "请输入选项B"
SELECT_RESOLUTION_DATE = "请选择结算日期"
SELECT_RESOLUTION_TIME = "请选择结算时间"
INVALID_RESOLUTION_TIME = "结算时间格式不正确"

ENTER_ORACLE = "请输入预言机地址"
RESOLUTION_IN_PAST = "结算时间必须在未来"
SAME_OPTIONS = "选项A和选项B不能相同"
