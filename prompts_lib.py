preferences_heading_incorporate = (
    "User's Technical Preferences (IMPORTANT: You MUST incorporate these into your description):"
)
preferences_heading_follow = "User's Technical Preferences (IMPORTANT: You MUST follow these):"
preferences_heading_reinterpret = (
    "User's Technical Preferences (IMPORTANT: You MUST creatively reinterpret the image according to these):"
)


## Idea -> prompt pair

idea_freestyle = """You are a creative expert and prompt engineer. Your task is to take the user's core idea and expand it into a single, rich, descriptive, and imaginative paragraph in English, suitable for an advanced AI image generation model. You have creative freedom but must respect the user's technical preferences if provided. Also, create a Vietnamese translation of the final English paragraph.

**User's Core Idea:** "{idea}"
{preferences}
**Instructions:**
1. Brainstorm creative details related to the idea and preferences.
2. Write the final English prompt as a single, detailed paragraph.
3. Provide a faithful Vietnamese translation of that English prompt.
4. Include a comprehensive negative prompt suggestion within the English prompt using a standard format like '--neg ...' or 'Negative prompt: ...' at the end.
5. **Output Format:** Return ONLY the JSON object with the "english" and "vietnamese" prompts."""

idea_focused = """**User's Core Idea:** "{idea}"
**Contextual Theme:** "{branch}"
You are an expert prompt engineer. Your task is to expand the user's simple idea into a detailed specification based on the theme.
{preferences}
**Instructions:**
1. Analyze the user's idea, contextual theme, and especially their technical preferences. The technical preferences are mandatory constraints, not suggestions.
2. Mentally fill out EVERY field of the JSON structure below with creative details that match all the inputs.
3. Use ALL details from your mental model to write two rich, descriptive paragraphs (one Vietnamese, one English).
4. The final paragraph MUST include a comprehensive negative prompt using a standard format like '--neg ...' or 'Negative prompt: ...' at the end.
5. **Output Format:** Return ONLY the JSON object with the "english" and "vietnamese" prompts.

**JSON Structure Guide:** {structure}"""

idea_in_depth = """You are a world-class creative director and prompt engineer for an advanced AI image generation model. Your task is to take a user's simple idea and transform it into a professional, hyper-detailed, and cinematic prompt.

**User's Core Idea:** "{idea}"
{preferences}
**Instructions:**
1. **Deconstruct the Idea:** Break down the user's idea into core components: Subject, Environment, Action, Mood, and Style.
2. **Add Professional Details:** For each component, add extremely detailed, professional-level descriptions. Specify professional camera gear (e.g., shot on ARRI Alexa with a 35mm prime lens), advanced lighting techniques (e.g., chiaroscuro, volumetric lighting), composition (e.g., rule of thirds, leading lines), and artistic influences.
3. **Synthesize Master Prompts:** Synthesize these details into two master prompts: one in English and one in standard, fully-accented Vietnamese.
4. **Negative Prompt:** Include a comprehensive negative prompt within the English prompt using a standard format like '--neg ...' or 'Negative prompt: ...' at the end.
5. **Output Format:** Return ONLY the JSON object with the "english" and "vietnamese" prompts."""

idea_super = """You are a world-class creative director and prompt engineer. Your task is to take a user's simple idea and transform it into a professional, ultimate-quality prompt, strictly following a specific theme while injecting cinematic, professional details.

**User's Core Idea:** "{idea}"
**Strict Theme/Branch:** "{branch}" (You MUST adhere to the concepts and structure of this theme. This is the foundational guide for your creativity).
{preferences}
**Instructions:**
1. **Analyze Idea within Theme:** Analyze the user's idea exclusively through the lens of the '{branch}' theme. Mentally fill out EVERY field of the JSON structure below; it is your guide.
2. **Inject Professional Details:** For each structural element of the theme, inject hyper-detailed, professional-level descriptions. Specify professional camera gear (e.g., shot on ARRI Alexa with a 85mm prime lens), advanced lighting techniques (e.g., chiaroscuro, volumetric lighting, god rays), and cinematic composition (e.g., rule of thirds, leading lines).
3. **Synthesize Master Prompts:** Create two master prompts (one in English, one in standard, fully-accented Vietnamese) that are both incredibly detailed AND perfectly aligned with the chosen theme. The technical preferences are mandatory constraints.
4. **Negative Prompt:** Include a comprehensive negative prompt within the English prompt using a standard format like '--neg ...' or 'Negative prompt: ...' at the end.
5. **Output Format:** Return ONLY the JSON object with the "english" and "vietnamese" prompts.

**JSON Structure Guide:** {structure}"""


## Image -> prompt pair

image_classification = (
    "Analyze the image and classify it into one of the following categories: {categories}. "
    "Return ONLY the JSON object with the single \"category\" field."
)

image_freestyle = """You are an expert image analyst and prompt engineer. Your task is to analyze a user's image and describe it in extreme detail to create a high-quality generation prompt. Focus on objective details: subject, composition, lighting, style, color palette, and any specific artistic techniques.

**Instructions:**
1. Describe only what is visible; do not invent elements that are not present.
2. Write the English prompt as a single, detailed paragraph, and a faithful Vietnamese translation of it.
3. Include a comprehensive negative prompt within the English prompt using a standard format like '--neg ...' or 'Negative prompt: ...' at the end.
4. **Output Format:** Return ONLY the JSON object with the "english" and "vietnamese" prompts."""

image_focused = """You are an expert image analyst. The image has been classified as **{branch}**. Your task is to analyze the image through the lens of that category and turn it into a structured, high-quality generation prompt.

**Instructions:**
1. Mentally fill out EVERY field of the JSON structure below with what you observe in the image.
2. Use ALL details from your mental model to write two rich, descriptive paragraphs (one Vietnamese, one English).
3. The English paragraph MUST end with a comprehensive negative prompt using a standard format like '--neg ...' or 'Negative prompt: ...'.
4. **Output Format:** Return ONLY the JSON object with the "english" and "vietnamese" prompts.

**JSON Structure Guide:** {structure}"""

image_in_depth = """You are a world-class creative director and image analyst. Your task is to deconstruct the user's image and rebuild it as a professional, hyper-detailed generation prompt.

**Instructions:**
1. **Deconstruct the Image:** Fill the "analysis" object with the image's Subject, Environment, Action, Mood, and Style.
2. **Add Professional Details:** For each component, add professional-level vocabulary: camera and lens (e.g., shot on ARRI Alexa with a 35mm prime lens), lighting technique (e.g., chiaroscuro, volumetric lighting), and composition (e.g., rule of thirds, leading lines).
3. **Synthesize Master Prompts:** Write two master paragraphs into the "descriptions" object: "english" and standard, fully-accented "vietnamese".
4. **Negative Prompt:** Embed a comprehensive negative prompt at the end of the English paragraph using a standard format like '--neg ...' or 'Negative prompt: ...'.
5. **Output Format:** Return ONLY the JSON object with "analysis" and "descriptions"."""

image_super = """You are an expert image analyst and creative director. The image has been classified as **{branch}**. Your task is to turn it into an ultimate-quality prompt that strictly follows the structure of that category while injecting cinematic, professional details.

**Instructions:**
1. **Analyze within Theme:** Mentally fill out EVERY field of the JSON structure below with what you observe in the image.
2. **Inject Professional Details:** For each structural element, add hyper-detailed, professional-level descriptions: camera gear (e.g., shot on ARRI Alexa with a 85mm prime lens), advanced lighting techniques (e.g., chiaroscuro, volumetric lighting, god rays), and cinematic composition.
3. **Synthesize Master Prompts:** Create two master prompts (one in English, one in standard, fully-accented Vietnamese) that are both incredibly detailed AND faithful to the image and the theme.
4. **Negative Prompt:** Include a comprehensive negative prompt within the English prompt using a standard format like '--neg ...' or 'Negative prompt: ...' at the end.
5. **Output Format:** Return ONLY the JSON object with the "english" and "vietnamese" prompts.

**JSON Structure Guide:** {structure}"""


## Video prompts

video_base = """You are an expert prompt engineer for an advanced text-to-video AI model. Your task is to take a user's simple idea and transform it into a rich, detailed, and cinematic prompt. The prompt should be a single paragraph in English.

**User's Idea:** "{idea}"

**Instructions:**
1. **Core Elements:** Describe the main subject, the setting, and the primary action.
2. **Cinematography:** Specify camera angles (e.g., wide shot, close-up, drone shot, low angle), camera movement (e.g., panning, tracking shot, slow zoom), and lighting (e.g., golden hour, neon glow, cinematic lighting).
3. **Atmosphere & Style:** Define the mood (e.g., epic, mysterious, serene) and visual style (e.g., photorealistic, cinematic, futuristic, 8K, hyper-detailed).
4. **Details:** Add specific sensory details: what does the scene look, feel, or sound like?
5. **Negative Prompt:** End with a short negative prompt using a standard format like '--neg ...' or 'Negative prompt: ...'.
{mode_instruction}"""

video_mode_freestyle = "6. **Freestyle Mode:** You have complete creative freedom. Be imaginative and generate the most visually stunning and dynamic prompt possible based on the user's idea."
video_mode_focused = "6. **Focused Mode:** Analyze the user's idea and automatically select the most impactful cinematographic choices to bring it to life. Structure the prompt logically."
video_mode_in_depth = "6. **In-depth Mode:** Deconstruct the idea into its core components (subject, environment, style). For each component, add extremely detailed, professional-level descriptions. Synthesize these details into a master prompt, specifying professional camera gear (e.g., shot on ARRI Alexa with a 35mm prime lens) and advanced lighting techniques."
video_mode_super = "6. **Super Mode:** First, analyze the user's idea to identify its core genre and theme. Then, adhering strictly to that theme, deconstruct the idea and inject professional-level cinematic details for every component. The final prompt must be both thematically consistent and technically sophisticated, specifying camera gear, advanced lighting, and precise camera movements."

video_continuation = """You are an expert prompt engineer for a text-to-video AI model, specializing in creating coherent, continuous scenes.

**Previous Scene's Prompt:**
```
{previous_prompt}
```

**User's Idea for the NEXT Scene:** "{next_idea}"

**Your Task:**
Create a new, detailed, cinematic prompt for the next scene that logically and visually continues from the previous one.

**Instructions:**
1. **Analyze Continuity:** Understand the subject, setting, style, and mood of the previous prompt.
2. **Incorporate New Idea:** Seamlessly integrate the user's "next idea" into the narrative.
3. **Maintain Consistency:** The new prompt's subject, style, lighting, and mood should feel like a natural continuation. Camera work can change to reflect the new action (e.g., from a wide shot to a close-up).
4. **Mode Guideline:** {mode_instruction}
5. **Negative Prompt:** End with a short negative prompt using a standard format like '--neg ...' or 'Negative prompt: ...'.
6. **Output:** Provide only the new, complete, single-paragraph prompt in English."""

continuation_mode_freestyle = "Be highly creative and cinematic in your description of the new scene."
continuation_mode_focused = "Choose logical, effective camera shots and movements to advance the scene."
continuation_mode_in_depth = "Add professional-level details about camera work, lighting changes, and environmental interactions to make the transition seamless and cinematic."
continuation_mode_super_theme = "Keep the genre and theme of the previous scene exactly as they are while you add that detail."


## Image editing and compositing

edit_image = (
    "CRITICAL REQUIREMENT: The final image's aspect ratio MUST be exactly {aspect_ratio}. "
    "This is a non-negotiable rule. Do not inherit the aspect ratio from the input image. "
    "Now, edit the image with this instruction: \"{instruction}\""
)

face_swap = (
    "CRITICAL INSTRUCTION: You MUST use the exact face from the reference image. "
    "Preserve 99.99% of the facial features, identity, and expression. Do NOT alter the face. "
    "Place this exact person in the following scene: \"{scene}\""
)

character_label = "This is Character {index}."
background_label = "This is the background image."

character_composite = """**Task: Character Compositing**
You are provided with several character images (labeled "Character 1", "Character 2", etc.) and an optional background image.
Your job is to composite the selected characters into a single, coherent scene based on the user's description.

**User's Scene Description:** "{scene}"

**Instructions:**
1. **Isolate Characters:** Identify and cleanly isolate the characters from their original backgrounds. Preserve their faces, appearance, and identity exactly as in the source images.
2. **Positioning:** Place the characters into the new scene (either the provided background or a newly generated one) according to the description.
3. **Consistency:** Ensure lighting, shadows, and perspective are consistent for all characters and match the background.
4. **Final Image:** The final output must be a single, photorealistic image.
5. **Aspect Ratio:** The final image MUST have an aspect ratio of {aspect_ratio}. This is a strict requirement."""

restore_base = (
    "This is a photo restoration task. Please restore this old, blurry, or damaged photo to high quality. "
    "Enhance details, fix colors, and remove scratches or imperfections."
)
restore_single = " The photo contains a single person."
restore_multiple = " The photo contains multiple people."
restore_gender = " Gender: {gender}."
restore_age = " Approximate age: {age}."
restore_details = " Additional details: {description}."
restore_scene = " Scene description: {description}."
restore_goal = " The goal is a clean, sharp, and natural-looking restoration."

upscale = (
    "Upscale this image. Increase its resolution and sharpness while preserving all original details and art style. "
    "The goal is to make the image clearer and larger without adding new elements or changing the content."
)
