"""Prompt templates for shopassist.

Each template uses ``{placeholder}`` syntax for variable substitution via
``str.format()``.  The moderation prompts are written in Vietnamese because
the store's reviews are; literal braces in the JSON example are doubled.
"""

# ---------------------------------------------------------------------------
# Moderation: triage
# ---------------------------------------------------------------------------

TRIAGE_PROMPT = """\
Hãy phân tích bình luận sau đây của một khách hàng Việt Nam về sản phẩm thời trang:

Bình luận: "{comment}"

Nhiệm vụ của bạn:
1. Phân tích ngữ điệu, giọng điệu của bình luận (châm biếm, giận dữ, vui vẻ, tiêu cực...).
2. Xác định bình luận có RÕ RÀNG độc hại, xúc phạm, tiêu cực hay phân biệt vùng miền không.
3. Nếu rõ ràng độc hại hoặc có giọng điệu tiêu cực rõ rệt, trả về TOXIC.
4. Nếu có tiếng lóng, từ viết tắt hoặc từ mập mờ mà bạn không chắc nghĩa, trả về NEEDS_RESEARCH.
5. Nếu bình thường hoặc tích cực, trả về SAFE.

Về phân biệt vùng miền:
- "backy", "bắc kỳ", "nam kỳ" và mọi biến thể của chúng thường mang tính phân biệt vùng miền.
- Dù câu có vẻ trung tính, việc dùng các từ này vẫn là phân biệt vùng miền: trả về TOXIC.
- Hãy nhạy cảm với cách viết biến thể hoặc tiếng lóng ám chỉ người ở một vùng miền.

Đánh giá cả ngữ cảnh văn hóa Việt Nam, không chỉ từng từ riêng lẻ.

Chỉ trả về đúng một từ: TOXIC, NEEDS_RESEARCH hoặc SAFE.
"""

# ---------------------------------------------------------------------------
# Moderation: research query
# ---------------------------------------------------------------------------

RESEARCH_QUERY_PROMPT = """\
Bình luận: "{comment}"

Bình luận này có tiếng lóng hoặc từ viết tắt cần tra cứu. Hãy xác định chính xác \
từ cần tìm hiểu.

Đặc biệt nghi ngờ những từ có thể ám chỉ vùng miền hoặc một nhóm người, ví dụ:
- "backy" có thể là cách viết khác của "Bắc Kỳ" (gọi người miền Bắc, thường mang tính miệt thị)
- "namky", "trungky" và các biến thể tương tự

Viết MỘT câu truy vấn tìm kiếm ngắn gọn, tự nhiên để tra nghĩa của từ đó. Ví dụ:
- có từ "vkl" -> vkl là gì trong tiếng lóng Việt Nam
- có từ "backy" -> backy có phải từ phân biệt vùng miền không

Chỉ trả về câu truy vấn, không giải thích.
"""

# ---------------------------------------------------------------------------
# Moderation: final verdict
# ---------------------------------------------------------------------------

FINAL_VERDICT_PROMPT = """\
Bình luận gốc: "{comment}"

Kết quả tra cứu về nghĩa của tiếng lóng / từ viết tắt:
{research_results}

Dựa trên thông tin tra cứu và ngữ điệu của bình luận, hãy đánh giá bình luận.

Chính sách bắt buộc:
1. Phân biệt vùng miền: "backy", "bắc kỳ", "namky", "nam kỳ" và mọi biến thể luôn \
bị coi là phân biệt vùng miền, kể cả khi câu có vẻ trung tính hay chỉ là câu hỏi. \
Nếu tra cứu xác nhận một từ là cách gọi miệt thị theo vùng miền thì bình luận KHÔNG đạt.
2. Giọng điệu chế giễu, mỉa mai gây tổn thương thì KHÔNG đạt.
3. Tiếng lóng vốn thô tục nhưng được dùng theo nghĩa tích cực hoặc trung tính \
(ví dụ "ship nhanh vcl") thì ĐẠT.

Trả về DUY NHẤT một đối tượng JSON đúng định dạng:
{{
  "pass": true hoặc false,
  "reason": "lý do cụ thể nếu không đạt, null nếu đạt"
}}
"""

# ---------------------------------------------------------------------------
# Product assistant
# ---------------------------------------------------------------------------

CHAT_SYSTEM_PROMPT = """\
Bạn là trợ lý bán hàng của một cửa hàng thời trang trực tuyến. Trả lời bằng \
tiếng Việt, thân thiện và chính xác. Chỉ dùng thông tin sản phẩm được cung cấp \
trong phần "Thông tin sản phẩm"; không bịa ra sản phẩm, giá hay ID. ID sản phẩm \
phải lấy đúng từ dữ liệu được cung cấp.

Luôn trả về DUY NHẤT một đối tượng JSON với các trường:
- "answer": câu trả lời chính (hỗ trợ Markdown)
- "response_type": một trong product_detail, product_list, general_info, no_info, \
greeting, clarification, order_support, technical_support
- "related_products": danh sách {"id", "name", "price", "sale_price", "description"} (tùy chọn)
- "followup_questions": các câu hỏi bạn muốn hỏi lại khách (tùy chọn)
- "suggested_actions": danh sách {"type": "link" | "quick_reply", "text", "value"} (tùy chọn)
- "escalate_to_human": true nếu cần chuyển cho nhân viên (tùy chọn)
"""

CHAT_USER_PROMPT = """\
Lịch sử hội thoại:
{history}

Thông tin sản phẩm:
{product_context}

Khách hàng: {message}
"""
